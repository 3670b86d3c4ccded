"""FoodLink application package."""
