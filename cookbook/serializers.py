from rest_framework import serializers
from rest_framework.utils import html

from cookbook.exceptions import InvalidFilterError
from cookbook.query import RecipeFilter, SortBy, normalise_tags


class TagListField(serializers.Field):
    """Accept tags as a list or a comma-separated string."""

    def get_value(self, dictionary):
        if html.is_html_input(dictionary) and self.field_name in dictionary:
            values = dictionary.getlist(self.field_name)
            if len(values) > 1:
                return values
        return super().get_value(dictionary)

    def to_internal_value(self, data):
        if data is None:
            return []
        if not isinstance(data, (str, list, tuple)):
            raise serializers.ValidationError("Tags must be a list or a comma-separated string.")
        return normalise_tags(data)

    def to_representation(self, value):
        return list(value or [])


class RecipeSerializer(serializers.Serializer):
    """Read-only shape of an id-merged recipe document."""
    id = serializers.CharField(read_only=True)
    title = serializers.CharField(read_only=True)
    instructions = serializers.CharField(read_only=True)
    ingredients = serializers.ListField(child=serializers.CharField(), read_only=True)
    authorId = serializers.CharField(read_only=True)
    tags = serializers.ListField(child=serializers.CharField(), read_only=True)
    averageRating = serializers.FloatField(read_only=True)
    saves = serializers.IntegerField(read_only=True)
    prepTime = serializers.CharField(read_only=True, allow_blank=True, default="")
    cookTime = serializers.CharField(read_only=True, allow_blank=True, default="")
    servings = serializers.CharField(read_only=True, allow_blank=True, default="")
    imageUri = serializers.CharField(read_only=True, allow_null=True, default=None)


class RecipeWriteSerializer(serializers.Serializer):
    """Validate camelCase recipe input into the service's field names."""
    title = serializers.CharField(max_length=255)
    instructions = serializers.CharField(required=False, allow_blank=True)
    ingredients = serializers.ListField(child=serializers.CharField(), required=False)
    tags = TagListField(required=False)
    prepTime = serializers.CharField(source="prep_time", required=False, allow_blank=True, max_length=64)
    cookTime = serializers.CharField(source="cook_time", required=False, allow_blank=True, max_length=64)
    servings = serializers.CharField(required=False, allow_blank=True, max_length=64)
    imageUri = serializers.URLField(source="image_uri", required=False, allow_null=True, max_length=1000)

    def validate_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Title cannot be blank.")
        return value


class RecipeFilterSerializer(serializers.Serializer):
    """Query-string parameters of the recipe listing."""
    title = serializers.CharField(required=False, allow_blank=True, default="")
    min_rating = serializers.FloatField(required=False, min_value=0, max_value=5, default=0)
    tags = TagListField(required=False, default=list)
    mine = serializers.BooleanField(required=False, default=False)
    sort = serializers.CharField(required=False, allow_blank=True, default="")
    limit = serializers.IntegerField(required=False, min_value=1, allow_null=True, default=None)

    def validate_sort(self, value):
        try:
            return SortBy.parse(value)
        except InvalidFilterError as e:
            raise serializers.ValidationError(str(e))

    def to_filter(self, user_id=None) -> RecipeFilter:
        data = self.validated_data
        return RecipeFilter(
            title_contains=data["title"],
            min_rating=data["min_rating"],
            tags=data["tags"],
            author_id=user_id if data["mine"] else None,
            sort_by=data["sort"],
            limit=data["limit"],
        )


class ReviewSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    text = serializers.CharField(required=False, allow_blank=True, default="")


class PopularTagsSerializer(serializers.Serializer):
    limit = serializers.IntegerField(required=False, min_value=1, allow_null=True, default=None)
    mine = serializers.BooleanField(required=False, default=False)
    source = serializers.ChoiceField(choices=["recipes", "counters"], required=False, default="recipes")


class GenerateRequestSerializer(serializers.Serializer):
    ingredients = serializers.ListField(child=serializers.CharField(), allow_empty=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    save = serializers.BooleanField(required=False, default=False)


class GeneratedRecipeSerializer(serializers.Serializer):
    """Structured recipe returned by the text model."""
    title = serializers.CharField(max_length=255)
    instructions = serializers.CharField()
    ingredients = serializers.ListField(child=serializers.CharField(), allow_empty=False)
    tags = TagListField(required=False, default=list)
    prepTime = serializers.CharField(source="prep_time", required=False, allow_blank=True, default="")
    cookTime = serializers.CharField(source="cook_time", required=False, allow_blank=True, default="")
    servings = serializers.CharField(required=False, allow_blank=True, default="")


class ImageInputSerializer(serializers.Serializer):
    """A photo sent either as a multipart file or as a URL."""
    image = serializers.FileField(required=False)
    imageUrl = serializers.URLField(source="image_url", required=False, max_length=2000)

    def validate_image(self, value):
        content_type = getattr(value, "content_type", "") or ""
        if not content_type.startswith("image/"):
            raise serializers.ValidationError("Upload must be an image.")
        return value

    def validate(self, attrs):
        if bool(attrs.get("image")) == bool(attrs.get("image_url")):
            raise serializers.ValidationError("Send either an image file or an imageUrl.")
        return attrs

    def image_source(self):
        return self.validated_data.get("image") or self.validated_data["image_url"]


class DetectedIngredientsSerializer(serializers.Serializer):
    """Ingredients the vision model recognised in a photo."""
    ingredients = serializers.ListField(child=serializers.CharField(), allow_empty=False)


class MealAnalysisSerializer(serializers.Serializer):
    """Nutrition estimate for a photographed meal; amounts keep their units."""
    protein = serializers.CharField(required=False, allow_blank=True, max_length=32, default="0g")
    fat = serializers.CharField(required=False, allow_blank=True, max_length=32, default="0g")
    carbs = serializers.CharField(required=False, allow_blank=True, max_length=32, default="0g")
    sugar = serializers.CharField(required=False, allow_blank=True, max_length=32, default="0g")
    ingredients = serializers.ListField(child=serializers.CharField(), required=False, default=list)
