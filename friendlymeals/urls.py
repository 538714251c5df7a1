"""URL configuration for the friendlymeals project."""
from django.contrib import admin
from django.urls import path

from cookbook.views import (
    GenerateRecipeApi,
    IngredientsFromImageApi,
    MyReviewApi,
    PopularTagsApi,
    RecipeDetailApi,
    RecipeListApi,
    RecipeReviewApi,
    RecipeSaveApi,
    SavedRecipesApi,
    ScanMealApi,
)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/recipes/', RecipeListApi.as_view(), name='recipe_list_api'),
    path('api/recipes/generate/', GenerateRecipeApi.as_view(), name='recipe_generate_api'),
    path('api/recipes/ingredients-from-image/', IngredientsFromImageApi.as_view(), name='ingredients_from_image_api'),
    path('api/recipes/<str:pk>/', RecipeDetailApi.as_view(), name='recipe_detail_api'),
    path('api/recipes/<str:pk>/reviews/', RecipeReviewApi.as_view(), name='recipe_review_api'),
    path('api/recipes/<str:pk>/reviews/mine/', MyReviewApi.as_view(), name='my_review_api'),
    path('api/recipes/<str:pk>/save/', RecipeSaveApi.as_view(), name='recipe_save_api'),
    path('api/saves/', SavedRecipesApi.as_view(), name='saved_recipes_api'),
    path('api/tags/popular/', PopularTagsApi.as_view(), name='popular_tags_api'),
    path('api/meals/scan/', ScanMealApi.as_view(), name='scan_meal_api'),
]
