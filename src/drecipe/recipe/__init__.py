"""Recipe actions (apply, label) and the recipe runner."""

from drecipe.recipe.apply import Applier
from drecipe.recipe.labeling import Labeler
from drecipe.recipe.runner import Recipe, RecipeResult, RecipeRunner, Task, TaskResult

__all__ = ["Applier", "Labeler", "Recipe", "RecipeResult", "RecipeRunner", "Task", "TaskResult"]
