"""PromptManager — Jinja2-based prompt renderer for provider calls.

Loads templates from the ``template/`` directory and renders the audit,
extraction, lookup, advisor and repair prompts.  Every template asks for a
single JSON object; the gateway's parser tolerates prose around it.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

import jinja2

from legal_intake.constants import MAX_PROMPT_ANSWERS_CHARS


class PromptManager:
    """Jinja2-based prompt renderer.

    Args:
        template_dir: optional override for the template directory.
            Defaults to ``template/`` sibling of this module.
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        if template_dir is None:
            template_dir = Path(__file__).parent / "template"
        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._env.filters["tojson"] = lambda v: json.dumps(v, ensure_ascii=False)

    def render(self, template_name: str, **context) -> str:
        """Render a named template with arbitrary context."""
        template = self._env.get_template(template_name)
        return template.render(**context)

    def render_audit(
        self,
        problem: str,
        answers: dict[str, Any] | None = None,
        *,
        location: str | None = None,
        template_ids: Iterable[str] = (),
    ) -> str:
        """Audit prompt; the serialised answers are capped in length."""
        answers_json = ""
        if answers:
            answers_json = json.dumps(answers, ensure_ascii=False, default=str)
            answers_json = answers_json[:MAX_PROMPT_ANSWERS_CHARS]
        return self.render(
            "audit.jinja2",
            problem=problem,
            location=location,
            answers_json=answers_json,
            template_ids=list(template_ids),
        )

    def render_extraction(self, message: str, categories: Iterable[str] = ()) -> str:
        return self.render("extraction.jinja2", message=message, categories=list(categories))

    def render_lookup(self, location: str, specialty: str, limit: int) -> str:
        return self.render("lookup.jinja2", location=location, specialty=specialty, limit=limit)

    def render_advisor(
        self,
        query: str,
        *,
        schema: str,
        context: dict[str, Any] | None = None,
        history: list[dict[str, str]] | None = None,
    ) -> str:
        return self.render(
            "advisor.jinja2", query=query, schema=schema, context=context, history=history,
        )

    def render_repair(self, raw_output: str, *, schema: str) -> str:
        return self.render("repair.jinja2", raw_output=raw_output, schema=schema)
