from .api_views import (
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
    cookbook_exception_handler,
)
