"""
Recipe generation from a list of ingredients, and photo analysis.

Generation makes three sequential calls to the OpenAI API:

1. a free-text recipe written from the ingredients and the cook's notes,
2. the same recipe restated as a JSON object (title, instructions,
   ingredients, tags, prepTime, cookTime, servings),
3. a photo-style image of the dish.

The JSON is validated with `GeneratedRecipeSerializer` before anything is
stored. A failed image step leaves `imageUri` empty; any other failure raises
`GenerationError`.

Photos (an uploaded file or an image URL) go to the vision chat model in JSON
mode: `ingredients_from_image` lists the visible ingredients and `scan_meal`
estimates a meal's protein, fat, carbs and sugar.
"""

import base64
import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

import openai
from django.conf import settings

from cookbook.exceptions import GenerationError
from cookbook.serializers import (
    DetectedIngredientsSerializer,
    GeneratedRecipeSerializer,
    MealAnalysisSerializer,
)
from .recipes import RecipeService

logger = logging.getLogger(__name__)

RECIPE_PROMPT = (
    "You are a helpful cook. Write one recipe that uses these ingredients: {ingredients}. "
    "List the ingredients with quantities, then numbered steps. "
    "Give preparation time, cooking time and number of servings."
)
NOTES_PROMPT = " Take these notes into account: {notes}"
STRUCTURE_PROMPT = (
    "Restate the following recipe as a JSON object with the keys "
    '"title" (string), "instructions" (string), "ingredients" (array of strings), '
    '"tags" (array of up to 5 short lowercase labels), "prepTime", "cookTime" and '
    '"servings" (short strings such as "15 min" or "4 people"). '
    "Reply with the JSON object only.\n\n{recipe}"
)
IMAGE_PROMPT = "A realistic overhead photo of a plated dish: {title}."
IMAGE_SIZE = "1024x1024"
INGREDIENTS_PROMPT = (
    "List every food ingredient visible in this photo, with an amount where you can judge one. "
    'Reply with a JSON object {"ingredients": [strings]}.'
)
MEAL_PROMPT = (
    "Estimate the nutritional content of the meal in this photo. Reply with a JSON object with "
    'the keys "protein", "fat", "carbs" and "sugar" (strings with units, such as "20g") '
    'and "ingredients" (array of strings).'
)


def image_content(image) -> Dict[str, Any]:
    """Chat content part for an image URL or an uploaded image file."""
    if isinstance(image, str):
        url = image
    else:
        content_type = getattr(image, "content_type", None) or "image/jpeg"
        url = f"data:{content_type};base64,{base64.b64encode(image.read()).decode('utf-8')}"
    return {"type": "image_url", "image_url": {"url": url}}


class RecipeGenerationService:
    """Turn ingredients into a validated recipe document, optionally stored."""

    def __init__(self, *, client=None, recipe_service=None) -> None:
        self._client = client
        self._recipe_service = recipe_service

    @property
    def client(self):
        if self._client is None:
            if not settings.OPENAI_API_KEY:
                raise GenerationError("OPENAI_API_KEY is not configured")
            self._client = openai.OpenAI(api_key=settings.OPENAI_API_KEY)
        return self._client

    @property
    def recipe_service(self):
        if self._recipe_service is None:
            self._recipe_service = RecipeService()
        return self._recipe_service

    def generate(
        self,
        ingredients: Sequence[str],
        notes: str = "",
        author_id: Optional[str] = None,
        save: bool = False,
    ) -> Dict[str, Any]:
        """
        Generate a recipe; when save is set, store it for author_id.

        Returns the recipe fields in service (snake_case) form, plus "id"
        when the recipe was stored.
        """
        ingredients = [i.strip() for i in ingredients if i and i.strip()]
        if not ingredients:
            raise GenerationError("At least one ingredient is required")

        text = self._recipe_text(ingredients, notes)
        fields = self._structure(text)
        fields["image_uri"] = self._image(fields["title"])

        if save:
            if not author_id:
                raise GenerationError("An author is required to save a generated recipe")
            fields["id"] = self.recipe_service.create(author_id, fields)
        return fields

    def ingredients_from_image(self, image) -> List[str]:
        """Return the ingredients the vision model recognises in a photo."""
        raw = self._chat(self._with_image(INGREDIENTS_PROMPT, image), json_mode=True)
        data = self._validated(raw, DetectedIngredientsSerializer, "Ingredient list")
        return [i.strip() for i in data["ingredients"] if i.strip()]

    def scan_meal(self, image) -> Dict[str, Any]:
        """Estimate protein, fat, carbs and sugar of the meal in a photo."""
        raw = self._chat(self._with_image(MEAL_PROMPT, image), json_mode=True)
        return self._validated(raw, MealAnalysisSerializer, "Meal analysis")

    def _with_image(self, prompt: str, image) -> List[Dict[str, Any]]:
        if not image:
            raise GenerationError("An image file or URL is required")
        return [{"type": "text", "text": prompt}, image_content(image)]

    def _recipe_text(self, ingredients: Sequence[str], notes: str) -> str:
        prompt = RECIPE_PROMPT.format(ingredients=", ".join(ingredients))
        if notes:
            prompt += NOTES_PROMPT.format(notes=notes)
        return self._chat(prompt)

    def _structure(self, recipe_text: str) -> Dict[str, Any]:
        raw = self._chat(STRUCTURE_PROMPT.format(recipe=recipe_text), json_mode=True)
        return self._validated(raw, GeneratedRecipeSerializer, "Generated recipe")

    def _validated(self, raw: str, serializer_class, what: str) -> Dict[str, Any]:
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            raise GenerationError(f"{what} JSON could not be parsed: {e}") from e
        serializer = serializer_class(data=payload)
        if not serializer.is_valid():
            raise GenerationError(f"{what} is incomplete: {serializer.errors}")
        return dict(serializer.validated_data)

    def _image(self, title: str) -> Optional[str]:
        try:
            response = self.client.images.generate(
                model=settings.COOKBOOK_IMAGE_MODEL,
                prompt=IMAGE_PROMPT.format(title=title),
                n=1,
                size=IMAGE_SIZE,
            )
            return response.data[0].url
        except (openai.OpenAIError, IndexError) as e:
            logger.warning("Image generation failed for %r: %s", title, e)
            return None

    def _chat(self, content: Union[str, List[Dict[str, Any]]], json_mode: bool = False) -> str:
        kwargs = {"response_format": {"type": "json_object"}} if json_mode else {}
        try:
            response = self.client.chat.completions.create(
                model=settings.COOKBOOK_TEXT_MODEL,
                messages=[{"role": "user", "content": content}],
                **kwargs,
            )
        except openai.OpenAIError as e:
            logger.error("Text generation failed: %s", e)
            raise GenerationError(str(e)) from e
        reply = response.choices[0].message.content if response.choices else None
        if not reply:
            raise GenerationError("Text generation returned an empty reply")
        return reply
