"""FoodLink security utility package."""
