from __future__ import annotations

from typing import Any, List, Optional, Sequence, Union

from dash import html
from dash.development.base_component import Component

from data_explorer.validation.errors import ValidationError, ValidationIssue

DEFAULT_TITLE = "Data Explorer"


def build_app_title(title: str = DEFAULT_TITLE, favicon: Optional[str] = None) -> html.Div:
    """
    Header brand block: optional favicon image + title.
    """
    if not isinstance(title, str) or not title.strip():
        raise ValidationError([ValidationIssue("TITLE_TYPE", "title must be a non-empty string.")])

    children: List[Any] = []
    if favicon:
        children.append(html.Img(src=favicon, alt="", style={"height": "32px"}, className="me-2"))
    children.append(html.H2(title, className="mb-0"))
    return html.Div(children, className="d-flex align-items-center dx-app-title")


def validate_app_title_tag(tag: Any) -> None:
    """
    Raises:
        ValidationError: tag is not a Dash component
    """
    if not isinstance(tag, Component):
        raise ValidationError(
            [ValidationIssue("TITLE_TAG", f"title must be a string or a Dash component, got {type(tag).__name__}.")]
        )


def _is_tag_list(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and len(value) > 0 and all(isinstance(v, Component) for v in value)


def coerce_content(value: Union[str, Component, Sequence[Component], None], name: str) -> Component:
    """
    Normalise header/footer/splash content:
    - str -> html.P(str)
    - Dash component -> as is
    - non-empty list of components -> html.Div(list)

    Raises:
        ValidationError: anything else
    """
    if value is None:
        return html.P()
    if isinstance(value, str):
        return html.P(value)
    if isinstance(value, Component):
        return value
    if _is_tag_list(value):
        return html.Div(list(value))
    raise ValidationError(
        [ValidationIssue(f"{name.upper()}_TYPE", f"{name} must be a string, a Dash component or a list of components.", argument=name)]
    )


def resolve_title(title: Union[str, Component, None]) -> tuple[str, Component]:
    """
    Returns (browser tab title, header brand component).
    """
    if title is None:
        return DEFAULT_TITLE, build_app_title(DEFAULT_TITLE)
    if isinstance(title, str):
        return title, build_app_title(title)
    validate_app_title_tag(title)
    return DEFAULT_TITLE, title
