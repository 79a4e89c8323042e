"""Descriptor files handed to ebook-convert."""

import json
from urllib.parse import urlparse

_RECIPE_TEMPLATE = '''from calibre.web.feeds.news import BasicNewsRecipe


class StoryRecipe(BasicNewsRecipe):
    title = {title!r}
    no_stylesheets = True
    auto_cleanup = True
    remove_javascript = True

    def parse_index(self):
        return [({title!r}, [{{"title": {title!r}, "url": {url!r}}}])]
'''


def story_title(url: str) -> str:
    """Best-effort human title for a story URL (last non-empty path segment)."""
    parsed = urlparse(url)
    segments = [segment for segment in parsed.path.split("/") if segment]
    if segments:
        return segments[-1].replace("-", " ").replace("_", " ")
    return parsed.netloc or "story"


def build_recipe(url: str, title: str | None = None) -> str:
    return _RECIPE_TEMPLATE.format(url=url, title=title or story_title(url))


def build_translation_config(
    engine: str,
    target_language: str,
    api_key: str | None = None,
) -> str:
    config: dict[str, object] = {
        "engine": engine,
        "target_language": target_language,
        "merge_translation": False,
    }
    if api_key:
        config["api_key"] = api_key
    return json.dumps(config, indent=2)
