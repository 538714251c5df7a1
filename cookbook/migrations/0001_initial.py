import cookbook.utils
import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Recipe",
            fields=[
                ("id", models.CharField(default=cookbook.utils.new_document_id, editable=False, max_length=64, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=255)),
                ("instructions", models.TextField(blank=True, default="")),
                ("ingredients", models.JSONField(blank=True, default=list)),
                ("author_id", models.CharField(db_index=True, max_length=128)),
                ("tags", models.JSONField(blank=True, default=list)),
                ("average_rating", models.FloatField(default=0.0)),
                ("saves", models.PositiveIntegerField(default=0)),
                ("prep_time", models.CharField(blank=True, default="", max_length=64)),
                ("cook_time", models.CharField(blank=True, default="", max_length=64)),
                ("servings", models.CharField(blank=True, default="", max_length=64)),
                ("image_uri", models.URLField(blank=True, max_length=1000, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "recipe",
                "indexes": [
                    models.Index(fields=["average_rating"], name="recipe_avg_rating_idx"),
                    models.Index(fields=["saves"], name="recipe_saves_idx"),
                    models.Index(fields=["title"], name="recipe_title_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Tag",
            fields=[
                ("name", models.CharField(max_length=100, primary_key=True, serialize=False)),
                ("total_recipes", models.PositiveIntegerField(default=0)),
            ],
            options={
                "db_table": "tag",
                "indexes": [
                    models.Index(fields=["-total_recipes", "name"], name="tag_total_name_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="RecipeTag",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("recipe", models.ForeignKey(db_column="recipe_id", on_delete=django.db.models.deletion.CASCADE, related_name="tag_links", to="cookbook.recipe")),
                ("tag", models.ForeignKey(db_column="tag_name", on_delete=django.db.models.deletion.CASCADE, related_name="recipe_links", to="cookbook.tag")),
            ],
            options={
                "db_table": "recipe_tag",
            },
        ),
        migrations.AddConstraint(
            model_name="recipetag",
            constraint=models.UniqueConstraint(fields=("recipe", "tag"), name="uniq_recipe_tag"),
        ),
        migrations.CreateModel(
            name="Review",
            fields=[
                ("id", models.CharField(editable=False, max_length=200, primary_key=True, serialize=False)),
                ("user_id", models.CharField(db_index=True, max_length=128)),
                ("rating", models.PositiveSmallIntegerField(validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(5)])),
                ("text", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("recipe", models.ForeignKey(db_column="recipe_id", on_delete=django.db.models.deletion.CASCADE, related_name="reviews", to="cookbook.recipe")),
            ],
            options={
                "db_table": "review",
            },
        ),
        migrations.AddConstraint(
            model_name="review",
            constraint=models.UniqueConstraint(fields=("recipe", "user_id"), name="uniq_review_recipe_user"),
        ),
        migrations.CreateModel(
            name="Save",
            fields=[
                ("id", models.CharField(editable=False, max_length=200, primary_key=True, serialize=False)),
                ("user_id", models.CharField(db_index=True, max_length=128)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("recipe", models.ForeignKey(db_column="recipe_id", on_delete=django.db.models.deletion.CASCADE, related_name="save_records", to="cookbook.recipe")),
            ],
            options={
                "db_table": "save",
            },
        ),
        migrations.AddConstraint(
            model_name="save",
            constraint=models.UniqueConstraint(fields=("recipe", "user_id"), name="uniq_save_recipe_user"),
        ),
    ]
