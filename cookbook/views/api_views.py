import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView, exception_handler

from cookbook.exceptions import (
    GenerationError,
    InvalidFilterError,
    NotFoundError,
    PermissionDeniedError,
    QueryExecutionError,
)
from cookbook.permissions import IsAuthorOrReadOnly, user_id
from cookbook.serializers import (
    GenerateRequestSerializer,
    ImageInputSerializer,
    MealAnalysisSerializer,
    PopularTagsSerializer,
    RecipeFilterSerializer,
    RecipeSerializer,
    RecipeWriteSerializer,
    ReviewSerializer,
)
from cookbook.services import (
    RecipeGenerationService,
    RecipeQueryService,
    RecipeService,
    ReviewService,
    SaveService,
    TagService,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidFilterError, status.HTTP_400_BAD_REQUEST),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (QueryExecutionError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (GenerationError, status.HTTP_502_BAD_GATEWAY),
)


def cookbook_exception_handler(exc, context):
    """Map cookbook errors onto HTTP responses; defer the rest to DRF."""
    for error_class, status_code in ERROR_STATUS:
        if isinstance(exc, error_class):
            if status_code >= 500:
                logger.error("%s in %s: %s", type(exc).__name__, context.get("view"), exc)
            return Response({"detail": str(exc), "code": type(exc).__name__}, status=status_code)
    return exception_handler(exc, context)


class RecipeListApi(APIView):
    """List recipes matching the query-string filter, or create one."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        params = RecipeFilterSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        recipes = RecipeQueryService().search(params.to_filter(user_id(request)))
        return Response(RecipeSerializer(recipes, many=True).data)

    def post(self, request):
        serializer = RecipeWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service = RecipeService()
        recipe_id = service.create(user_id(request), serializer.validated_data)
        return Response(RecipeSerializer(service.get(recipe_id)).data, status=status.HTTP_201_CREATED)


class RecipeDetailApi(APIView):
    """Read a recipe; only its author may change or delete it."""
    permission_classes = [IsAuthenticated, IsAuthorOrReadOnly]

    def get_object(self, recipe_id):
        recipe = RecipeService().get(recipe_id)
        self.check_object_permissions(self.request, recipe)
        return recipe

    def get(self, request, pk):
        return Response(RecipeSerializer(self.get_object(pk)).data)

    def patch(self, request, pk):
        self.get_object(pk)
        serializer = RecipeWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        recipe = RecipeService().update(pk, serializer.validated_data)
        return Response(RecipeSerializer(recipe).data)

    def delete(self, request, pk):
        RecipeService().delete(pk, user_id(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


class RecipeReviewApi(APIView):
    """Rate a recipe; the reply carries the refreshed average."""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        serializer = ReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review, average = ReviewService().submit(
            pk, user_id(request), serializer.validated_data["rating"], serializer.validated_data["text"]
        )
        return Response({"review": review, "averageRating": average}, status=status.HTTP_201_CREATED)


class MyReviewApi(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        return Response({"recipeId": pk, "rating": ReviewService().get_user_rating(pk, user_id(request))})


class RecipeSaveApi(APIView):
    """Toggle the caller's save on a recipe."""
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        return Response({"recipeId": pk, "saved": SaveService().is_saved(pk, user_id(request))})

    def post(self, request, pk):
        saved, saves = SaveService().toggle(pk, user_id(request))
        return Response({"recipeId": pk, "saved": saved, "saves": saves})


class SavedRecipesApi(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        recipes = SaveService().saved_recipes(user_id(request))
        return Response(RecipeSerializer(recipes, many=True).data)


class PopularTagsApi(APIView):
    """Most used tags, counted from recipes or read from the tag counters."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        params = PopularTagsSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        data = params.validated_data
        service = TagService()
        if data["source"] == "counters":
            ranked = service.top_tags(limit=data["limit"])
        else:
            author_id = user_id(request) if data["mine"] else None
            ranked = service.popular_tags(limit=data["limit"], author_id=author_id)
        return Response([{"name": name, "count": count} for name, count in ranked])


class GenerateRecipeApi(APIView):
    """Generate a recipe from ingredients, optionally saving it for the caller."""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = GenerateRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        recipe = RecipeGenerationService().generate(
            data["ingredients"], notes=data["notes"], author_id=user_id(request), save=data["save"]
        )
        if "id" in recipe:
            return Response(RecipeSerializer(RecipeService().get(recipe["id"])).data, status=status.HTTP_201_CREATED)
        return Response(
            {
                "title": recipe["title"],
                "instructions": recipe["instructions"],
                "ingredients": recipe["ingredients"],
                "tags": recipe.get("tags", []),
                "prepTime": recipe.get("prep_time", ""),
                "cookTime": recipe.get("cook_time", ""),
                "servings": recipe.get("servings", ""),
                "imageUri": recipe.get("image_uri"),
            }
        )


class IngredientsFromImageApi(APIView):
    """List the ingredients visible in a photo of a fridge or pantry."""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ImageInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ingredients = RecipeGenerationService().ingredients_from_image(serializer.image_source())
        return Response({"ingredients": ingredients})


class ScanMealApi(APIView):
    """Estimate the nutrition of the meal in a photo."""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ImageInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        meal = RecipeGenerationService().scan_meal(serializer.image_source())
        return Response(MealAnalysisSerializer(meal).data)
