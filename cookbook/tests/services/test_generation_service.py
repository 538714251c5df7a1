import base64
import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import openai
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase, override_settings

from cookbook.exceptions import GenerationError
from cookbook.services import RecipeGenerationService

STRUCTURED = {
    "title": "Tomato Pasta",
    "instructions": "1. Boil pasta.\n2. Add sauce.",
    "ingredients": ["pasta", "tomatoes"],
    "tags": ["quick", " italian "],
    "prepTime": "5 min",
    "cookTime": "15 min",
    "servings": "2 people",
}


def chat_reply(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@override_settings(COOKBOOK_TEXT_MODEL="text-model", COOKBOOK_IMAGE_MODEL="image-model", OPENAI_API_KEY="key")
class RecipeGenerationServiceTests(SimpleTestCase):
    def setUp(self):
        self.client = MagicMock()
        self.client.chat.completions.create.side_effect = [
            chat_reply("A tomato pasta recipe..."),
            chat_reply(json.dumps(STRUCTURED)),
        ]
        self.client.images.generate.return_value = SimpleNamespace(data=[SimpleNamespace(url="https://img/1.png")])
        self.recipes = MagicMock()
        self.recipes.create.return_value = "new-id"
        self.service = RecipeGenerationService(client=self.client, recipe_service=self.recipes)

    def test_three_step_pipeline(self):
        recipe = self.service.generate(["pasta", " tomatoes "], notes="no garlic")

        self.assertEqual(recipe["title"], "Tomato Pasta")
        self.assertEqual(recipe["tags"], ["quick", "italian"])
        self.assertEqual(recipe["prep_time"], "5 min")
        self.assertEqual(recipe["image_uri"], "https://img/1.png")
        first, second = self.client.chat.completions.create.call_args_list
        self.assertIn("pasta, tomatoes", first.kwargs["messages"][0]["content"])
        self.assertIn("no garlic", first.kwargs["messages"][0]["content"])
        self.assertEqual(second.kwargs["response_format"], {"type": "json_object"})
        self.assertEqual(second.kwargs["model"], "text-model")
        self.assertEqual(self.client.images.generate.call_args.kwargs["model"], "image-model")
        self.recipes.create.assert_not_called()

    def test_save_persists_for_author(self):
        recipe = self.service.generate(["pasta"], author_id="alice", save=True)
        self.assertEqual(recipe["id"], "new-id")
        author, fields = self.recipes.create.call_args.args
        self.assertEqual(author, "alice")
        self.assertEqual(fields["image_uri"], "https://img/1.png")

    def test_image_failure_leaves_image_empty(self):
        self.client.images.generate.side_effect = openai.OpenAIError("quota")
        with self.assertLogs("cookbook.services.generation", level="WARNING"):
            recipe = self.service.generate(["pasta"])
        self.assertIsNone(recipe["image_uri"])

    def test_text_failure_raises_generation_error(self):
        self.client.chat.completions.create.side_effect = openai.OpenAIError("down")
        with self.assertRaises(GenerationError):
            self.service.generate(["pasta"])

    def test_unparseable_json(self):
        self.client.chat.completions.create.side_effect = [chat_reply("recipe"), chat_reply("not json")]
        with self.assertRaises(GenerationError):
            self.service.generate(["pasta"])

    def test_incomplete_json(self):
        self.client.chat.completions.create.side_effect = [
            chat_reply("recipe"),
            chat_reply(json.dumps({"title": "Only a title"})),
        ]
        with self.assertRaises(GenerationError):
            self.service.generate(["pasta"])

    def test_requires_ingredients(self):
        with self.assertRaises(GenerationError):
            self.service.generate(["", "  "])
        self.client.chat.completions.create.assert_not_called()

    def test_save_requires_author(self):
        with self.assertRaises(GenerationError):
            self.service.generate(["pasta"], save=True)

    @override_settings(OPENAI_API_KEY=None)
    def test_missing_api_key(self):
        with self.assertRaises(GenerationError):
            RecipeGenerationService().generate(["pasta"])


@override_settings(COOKBOOK_TEXT_MODEL="vision-model", OPENAI_API_KEY="key")
class PhotoAnalysisTests(SimpleTestCase):
    def setUp(self):
        self.client = MagicMock()
        self.service = RecipeGenerationService(client=self.client)

    def reply_with(self, payload):
        self.client.chat.completions.create.return_value = chat_reply(json.dumps(payload))

    def sent_content(self):
        return self.client.chat.completions.create.call_args.kwargs["messages"][0]["content"]

    def test_ingredients_from_uploaded_photo(self):
        self.reply_with({"ingredients": ["2 eggs", " spinach "]})
        photo = SimpleUploadedFile("fridge.png", b"png-bytes", content_type="image/png")

        ingredients = self.service.ingredients_from_image(photo)

        self.assertEqual(ingredients, ["2 eggs", "spinach"])
        text, image = self.sent_content()
        self.assertEqual(text["type"], "text")
        self.assertEqual(image["type"], "image_url")
        self.assertEqual(
            image["image_url"]["url"], "data:image/png;base64," + base64.b64encode(b"png-bytes").decode("utf-8")
        )
        call = self.client.chat.completions.create.call_args
        self.assertEqual(call.kwargs["response_format"], {"type": "json_object"})
        self.assertEqual(call.kwargs["model"], "vision-model")

    def test_ingredients_from_image_url(self):
        self.reply_with({"ingredients": ["rice"]})
        self.service.ingredients_from_image("https://img/fridge.jpg")
        self.assertEqual(self.sent_content()[1]["image_url"]["url"], "https://img/fridge.jpg")

    def test_no_ingredients_recognised(self):
        self.reply_with({"ingredients": []})
        with self.assertRaises(GenerationError):
            self.service.ingredients_from_image("https://img/empty.jpg")

    def test_scan_meal_fills_missing_amounts(self):
        self.reply_with({"protein": "31g", "fat": "12g", "carbs": 40, "ingredients": ["chicken", "rice"]})

        meal = self.service.scan_meal("https://img/plate.jpg")

        self.assertEqual(
            meal,
            {"protein": "31g", "fat": "12g", "carbs": "40", "sugar": "0g", "ingredients": ["chicken", "rice"]},
        )
        self.assertIn("protein", self.sent_content()[0]["text"])

    def test_scan_meal_unparseable_reply(self):
        self.client.chat.completions.create.return_value = chat_reply("about 30g of protein")
        with self.assertRaises(GenerationError):
            self.service.scan_meal("https://img/plate.jpg")

    def test_vision_failure_raises_generation_error(self):
        self.client.chat.completions.create.side_effect = openai.OpenAIError("down")
        with self.assertRaises(GenerationError):
            self.service.scan_meal("https://img/plate.jpg")

    def test_image_is_required(self):
        with self.assertRaises(GenerationError):
            self.service.ingredients_from_image(None)
        self.client.chat.completions.create.assert_not_called()
