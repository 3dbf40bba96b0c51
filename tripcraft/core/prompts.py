"""Prompt templates rendered with Jinja2.

Each prompt lives in ``tripcraft/templates`` as a ``.j2`` file and is registered
below with its metadata (declared variables, output format and which model tier
should answer it). Rendering is strict: a variable referenced by a template but
missing from the supplied mapping is an error instead of a silently preserved
placeholder.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Literal, Mapping, Optional, Sequence, Union

import jinja2

_LOGGER = logging.getLogger(__name__)

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

PromptValue = Union[str, int, float, bool, None]


class PromptNotFoundError(KeyError):
    """Raised when a prompt identifier has no backing template."""


class PromptRenderError(ValueError):
    """Raised when a template cannot be rendered with the supplied variables."""


@dataclass(frozen=True)
class PromptSpec:
    """Metadata describing a registered prompt template."""

    name: str
    filename: str
    description: str
    variables: Sequence[str]
    output_format: Literal["json", "text"] = "json"
    light: bool = False


@dataclass(frozen=True)
class RenderedPrompt:
    """A fully rendered prompt ready to send to the LLM."""

    name: str
    prompt: str
    model: str
    output_format: Literal["json", "text"]

    @property
    def json_mode(self) -> bool:
        return self.output_format == "json"


PROMPT_SPECS: Dict[str, PromptSpec] = {
    spec.name: spec
    for spec in (
        PromptSpec(
            name="trip-itinerary",
            filename="trip_itinerary.j2",
            description="Day-by-day itinerary for a destination and activity theme.",
            variables=("destination", "days", "activity_type", "has_children"),
        ),
        PromptSpec(
            name="photo-search-terms",
            filename="photo_search_terms.j2",
            description="Decide whether an activity is photographable and propose search terms.",
            variables=("destination", "activity", "activity_type"),
            light=True,
        ),
        PromptSpec(
            name="hero-photo-search",
            filename="hero_photo_search.j2",
            description="Pick a landmark search term for the itinerary header photo.",
            variables=("destination",),
            light=True,
        ),
        PromptSpec(
            name="packing-suggestions",
            filename="packing_suggestions.j2",
            description="Packing list built from the finished day plans and weather.",
            variables=(
                "destination",
                "days",
                "activity_type",
                "activities_list",
                "weather_condition",
                "temperature",
                "has_children",
            ),
        ),
    )
}


class PromptRenderer:
    """Loads registered templates and renders them with strict variable checks."""

    def __init__(
        self,
        *,
        default_model: str,
        light_model: Optional[str] = None,
        template_dir: Optional[Path] = None,
        specs: Optional[Mapping[str, PromptSpec]] = None,
    ) -> None:
        self.default_model = default_model
        self.light_model = light_model or default_model
        self._specs = dict(specs or PROMPT_SPECS)
        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir or _TEMPLATE_DIR)),
            undefined=jinja2.StrictUndefined,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=False,
        )

    def spec(self, name: str) -> PromptSpec:
        try:
            return self._specs[name]
        except KeyError:
            raise PromptNotFoundError(f"Prompt configuration not found: {name}") from None

    def names(self) -> List[str]:
        return sorted(self._specs)

    def render(self, name: str, variables: Mapping[str, PromptValue]) -> RenderedPrompt:
        """Render the named prompt with ``variables``."""

        spec = self.spec(name)
        try:
            template = self._env.get_template(spec.filename)
        except jinja2.TemplateNotFound as exc:
            raise PromptNotFoundError(f"Prompt configuration not found: {name}") from exc

        try:
            text = template.render(**dict(variables))
        except jinja2.UndefinedError as exc:
            raise PromptRenderError(f"Prompt {name!r} is missing a variable: {exc.message}") from exc
        except jinja2.TemplateError as exc:
            raise PromptRenderError(f"Prompt {name!r} failed to render: {exc}") from exc

        _LOGGER.debug("Rendered prompt %s (%d chars)", name, len(text))
        return RenderedPrompt(
            name=name,
            prompt=text.strip(),
            model=self.light_model if spec.light else self.default_model,
            output_format=spec.output_format,
        )


_SAMPLE_VARIABLES: Dict[str, Dict[str, PromptValue]] = {
    "packing-suggestions": {
        "days": 5,
        "destination": "Paris, France",
        "activities_list": "Visit Eiffel Tower, Louvre Museum, Seine River cruise",
        "activity_type": "cultural",
        "weather_condition": "mild and partly cloudy",
        "temperature": "18°C",
        "has_children": False,
    },
    "trip-itinerary": {
        "days": 3,
        "destination": "Tokyo, Japan",
        "activity_type": "cultural",
        "has_children": False,
    },
    "photo-search-terms": {
        "destination": "Rome, Italy",
        "activity": "Visit the Colosseum",
        "activity_type": "cultural",
    },
    "hero-photo-search": {
        "destination": "Barcelona, Spain",
    },
}


@dataclass(frozen=True)
class PromptCheck:
    """Outcome of rendering one registered prompt with sample variables."""

    prompt: str
    status: Literal["success", "error"]
    prompt_length: int = 0
    model: Optional[str] = None
    output_format: Optional[str] = None
    error: Optional[str] = None


def validate_prompts(
    renderer: PromptRenderer,
    samples: Optional[Mapping[str, Mapping[str, PromptValue]]] = None,
) -> List[PromptCheck]:
    """Render every registered prompt with sample variables and report the results."""

    samples = samples or _SAMPLE_VARIABLES
    results: List[PromptCheck] = []
    for name in renderer.names():
        try:
            rendered = renderer.render(name, samples.get(name, {}))
        except (PromptNotFoundError, PromptRenderError) as exc:
            _LOGGER.error("Prompt %s failed validation: %s", name, exc)
            results.append(PromptCheck(prompt=name, status="error", error=str(exc)))
            continue
        _LOGGER.info("Prompt %s rendered (%d chars)", name, len(rendered.prompt))
        results.append(
            PromptCheck(
                prompt=name,
                status="success",
                prompt_length=len(rendered.prompt),
                model=rendered.model,
                output_format=rendered.output_format,
            )
        )
    return results


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    renderer = PromptRenderer(default_model="primary", light_model="light")
    checks = validate_prompts(renderer)
    return 0 if all(check.status == "success" for check in checks) else 1


__all__ = [
    "PROMPT_SPECS",
    "PromptCheck",
    "PromptNotFoundError",
    "PromptRenderError",
    "PromptRenderer",
    "PromptSpec",
    "RenderedPrompt",
    "validate_prompts",
]


if __name__ == "__main__":  # pragma: no cover - manual check
    raise SystemExit(main())
