"""Kida environment setup and the built-in default layout.

Creates kida Environments for the views root (and any layouts root
outside it) and registers mantle's filters. Environments are created
once per manager and reused for the lifetime of the app.
"""

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from kida import ChoiceLoader, Environment, FileSystemLoader

from mantle.sanitize import escape_html

BUILTIN_FILTERS: dict[str, Callable[..., Any]] = {
    "escape_html": escape_html,
}


def create_environment(
    search_path: Sequence[str | Path],
    *,
    filters: dict[str, Callable[..., Any]] | None = None,
    auto_reload: bool = False,
) -> Environment:
    """Create a kida Environment loading templates from *search_path*.

    Autoescaping is always on. ``escape_html`` is registered as a filter
    for values that reach the output without going through it.
    """
    loader = ChoiceLoader([FileSystemLoader(str(p)) for p in search_path])
    env = Environment(
        loader=loader,
        autoescape=True,
        auto_reload=auto_reload,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.update_filters(BUILTIN_FILTERS)
    if filters:
        env.update_filters(filters)
    return env


def render_source(env: Environment, source: str, context: dict[str, Any]) -> str:
    """Compile *source* against *env* and render it with *context*."""
    return env.from_string(source).render(context)


DEFAULT_LAYOUT = """\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="{{ meta.viewport }}">
    <title>{{ meta.title }}</title>
    {% if meta.description %}
    <meta name="description" content="{{ meta.description }}">
    {% end %}
    {% if meta.keywords %}
    <meta name="keywords" content="{{ meta.keywords }}">
    {% end %}
    {% if meta.author %}
    <meta name="author" content="{{ meta.author }}">
    {% end %}
    <style>
        * { box-sizing: border-box; }
        body {
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Arial, sans-serif;
            margin: 0;
            line-height: 1.6;
            color: #333;
        }
        .container { max-width: 1200px; margin: 0 auto; padding: 1rem; }
        header { background: #4f46e5; color: #fff; padding: 1rem 0; }
        main { min-height: 60vh; padding: 2rem 0; }
        footer { background: #333; color: #fff; text-align: center; padding: 1rem 0; }
    </style>
    {% for href in layout_options.css %}
    <link rel="stylesheet" href="{{ href }}" crossorigin="anonymous">
    {% end %}
    {{ sections.head }}
</head>
<body class="{{ layout_options.body_class }}">
    <header>
        <div class="container">
            {% if sections.header %}
            {{ sections.header }}
            {% else %}
            <h1>{{ meta.title }}</h1>
            {% end %}
        </div>
    </header>
    <main>
        <div class="container">
            {{ sections.content }}
        </div>
    </main>
    <footer>
        <div class="container">
            {% if sections.footer %}
            {{ sections.footer }}
            {% else %}
            <p>Powered by mantle</p>
            {% end %}
        </div>
    </footer>
    {% for src in layout_options.js %}
    <script src="{{ src }}" crossorigin="anonymous"></script>
    {% end %}
    {{ sections.scripts }}
</body>
</html>
"""
