from django.contrib import admin

from cookbook.models import Recipe, RecipeTag, Review, Save, Tag
from cookbook.repos.recipe_repo import RecipeRepo
from cookbook.services import ReconcileService, RecipeService

EDITABLE_FIELDS = (
    'title', 'instructions', 'ingredients', 'tags', 'prep_time', 'cook_time', 'servings', 'image_uri',
)


class ReviewInline(admin.TabularInline):
    """Show a recipe's reviews on its admin page."""
    model = Review
    extra = 0
    readonly_fields = ['user_id', 'rating', 'text', 'updated_at']


@admin.register(Recipe)
class RecipeAdmin(admin.ModelAdmin):
    """Admin configuration for recipes with an aggregate repair action."""
    list_display = ('title', 'author_id', 'average_rating', 'saves', 'created_at')
    list_filter = ('created_at',)
    search_fields = ('title', 'author_id')
    readonly_fields = ('average_rating', 'saves')
    actions = ['recompute_aggregates']
    inlines = [ReviewInline]

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return self.readonly_fields + ('author_id',)
        return self.readonly_fields

    def save_model(self, request, obj, form, change):
        """Save through the recipe service so tag links and counters follow edits."""
        service = RecipeService(repo=RecipeRepo())
        fields = {name: getattr(obj, name) for name in EDITABLE_FIELDS}
        if change:
            service.update(obj.pk, fields)
        else:
            obj.pk = service.create(obj.author_id, fields)
        obj.refresh_from_db()

    def delete_model(self, request, obj):
        # the admin deletes on the author's behalf
        RecipeService(repo=RecipeRepo()).delete(obj.pk, obj.author_id)

    def delete_queryset(self, request, queryset):
        for obj in queryset:
            self.delete_model(request, obj)

    @admin.action(description='Recompute rating and saves from records')
    def recompute_aggregates(self, request, queryset):
        """Reset averageRating and saves of the selected recipes from their reviews and saves."""
        service = ReconcileService(repo=RecipeRepo())
        fixed = 0
        for recipe_id in queryset.values_list('id', flat=True):
            report = service.reconcile(recipe_id)
            fixed += len(report['ratings']) + len(report['saves'])
        self.message_user(request, f"Corrected {fixed} aggregate value(s).")


@admin.register(Tag)
class TagAdmin(admin.ModelAdmin):
    list_display = ('name', 'total_recipes')
    search_fields = ('name',)
    ordering = ('-total_recipes', 'name')


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ('recipe', 'user_id', 'rating', 'updated_at')
    list_filter = ('rating',)
    search_fields = ('recipe__title', 'user_id')


@admin.register(Save)
class SaveAdmin(admin.ModelAdmin):
    list_display = ('recipe', 'user_id', 'created_at')
    search_fields = ('recipe__title', 'user_id')


admin.site.register(RecipeTag)
