"""Fill the results template with drawn winner identifiers."""

from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path
from typing import Iterable, Optional, Union

from .drawer import DrawConfig, DrawOutcome
from .errors import InputParseError

logger = logging.getLogger(__name__)

WINNER_PREFIX = "#"
DEFAULT_TEMPLATE_RESOURCE = "template.html"


def format_winner(participant_id: int) -> str:
    return f"{WINNER_PREFIX}{participant_id}"


def _replace_each(text: str, token: str, participant_ids: Iterable[int]) -> str:
    """Replace the next occurrence of ``token`` once per identifier."""
    for participant_id in participant_ids:
        if token not in text:
            logger.warning("Template has no free %s placeholder for #%d", token, participant_id)
            continue
        text = text.replace(token, format_winner(participant_id), 1)
    return text


def fill_report(
    template: str, outcome: DrawOutcome, config: Optional[DrawConfig] = None
) -> str:
    """Substitute the winners of ``outcome`` into ``template``.

    Grand and consolation winners each take the first remaining occurrence of
    their tier's token and render as ``#<id>``. Every voucher group token is
    replaced once by the group's identifiers joined with single spaces.
    Everything else in the template is left untouched.
    """

    config = config or DrawConfig()
    text = _replace_each(template, config.grand_token, outcome.grand)
    text = _replace_each(text, config.consolation_token, outcome.consolation)
    for group in config.voucher_groups:
        if group.token not in text:
            logger.warning("Template has no %s placeholder", group.token)
            continue
        joined = " ".join(str(pid) for pid in outcome.voucher_group(group.name))
        text = text.replace(group.token, joined, 1)
    return text


def default_template() -> str:
    """Return the results template shipped with the package."""
    return (
        resources.files("raffledraw.raffle")
        .joinpath(DEFAULT_TEMPLATE_RESOURCE)
        .read_text(encoding="utf-8")
    )


def load_template(path: Optional[Union[str, Path]] = None) -> str:
    """Read the template at ``path``, or the packaged default when omitted."""
    if path is None:
        return default_template()
    try:
        return Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise InputParseError(f"Template {path} is not valid UTF-8: {exc}") from exc


__all__ = [
    "WINNER_PREFIX",
    "default_template",
    "fill_report",
    "format_winner",
    "load_template",
]
