SEED_AUTHOR_PREFIX = "seed_"

user_fixtures = ["seed_johndoe", "seed_janedoe", "seed_charlie"]

recipe_titles = [
    "Creamy Garlic Mushroom Pasta",
    "Smoky Chickpea Stew",
    "Lemon Herb Roast Chicken",
    "Spinach and Feta Omelette",
    "Tomato Basil Bruschetta",
    "Spicy Peanut Noodles",
    "Banana Oat Pancakes",
    "Honey Soy Salmon",
    "Roasted Vegetable Tray Bake",
    "Chocolate Mug Cake",
    "Chicken Fajita Bowl",
    "Sweet Potato Curry",
]

BASE_INGREDIENT_POOL = [
    "salt",
    "black pepper",
    "olive oil",
    "garlic cloves",
    "red onion",
    "cherry tomatoes",
    "parmesan",
    "fresh basil",
    "chicken breast",
    "smoked paprika",
    "ground cumin",
    "yogurt",
    "baby spinach",
    "mushrooms",
    "lemon juice",
    "soy sauce",
    "white rice",
    "pasta",
    "butter",
    "eggs",
]

tags_pool = ["quick", "family", "spicy", "budget", "comfort", "healthy", "high_protein", "low_carb"]

prep_times = ["5 min", "10 min", "15 min", "20 min"]
cook_times = ["10 min", "20 min", "30 min", "45 min", "1 h"]
servings_pool = ["1 person", "2 people", "4 people", "6 people"]

review_phrases = [
    "Made this twice already.",
    "Easy weeknight dinner.",
    "Needed more salt for me.",
    "The kids loved it.",
    "Good, but took longer than listed.",
]
