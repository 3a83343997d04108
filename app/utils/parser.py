import json
from typing import Any, Dict, Iterable, List

from app.schemas.health import RecipeStatus, RunningStatus


class Parser:
    def __init__(self, data):
        self.data = data

    def parse_credentials(self) -> Dict[str, Any]:
        """Return the credential bundle as a dict.

        Bundles may be stored as JSON text; anything that is not a mapping
        once decoded is treated as an empty bundle.
        """
        raw = self.data
        if isinstance(raw, (str, bytes)):
            try:
                raw = json.loads(raw)
            except ValueError:
                return {}
        if not isinstance(raw, dict):
            return {}
        return raw

    def parse_workato_recipes(self, recipe_ids: Iterable[Any]) -> List[RecipeStatus]:
        """Extract the running state of the requested recipes.

        The listing is either a bare array or an object with an `items` field.
        Ids are compared as strings; listing order is preserved.
        """
        wanted = {str(r) for r in recipe_ids}
        if not wanted:
            return []

        if isinstance(self.data, list):
            recipes = self.data
        elif isinstance(self.data, dict):
            recipes = self.data.get("items") or []
        else:
            recipes = []

        parsed = []
        for recipe in recipes:
            if not isinstance(recipe, dict) or recipe.get("id") is None:
                continue
            recipe_id = str(recipe["id"])
            if recipe_id not in wanted:
                continue
            parsed.append(RecipeStatus(
                recipe_id=recipe_id,
                running_status=RunningStatus.RUNNING if recipe.get("running") else RunningStatus.STOPPED,
                last_run_at=str(recipe["last_run_at"]) if recipe.get("last_run_at") else None,
            ))
        return parsed
