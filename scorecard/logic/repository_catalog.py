"""Catalog and score-tier data access.

Reads the configuration written by the external assessment builder and turns
it into immutable catalog models. ``replace_catalog`` exists for seeding and
bulk import; the flow and the scoring engine only ever read.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import TypeAdapter, ValidationError as PydanticValidationError
from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine

from scorecard.db.base import get_engine
from scorecard.models.catalog import AnswerOption, Category, Question, QuestionCatalog, ScoreTier

logger = logging.getLogger(__name__)

_QUESTION_ADAPTER: TypeAdapter = TypeAdapter(Question)


class CatalogLoadError(RuntimeError):
    pass


def _parse_settings(raw: Any) -> Dict[str, Any]:
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return raw
    try:
        parsed = json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        logger.error("question_settings_unparseable raw=%r", raw, exc_info=True)
        return {}
    return parsed if isinstance(parsed, dict) else {}


def question_from_row(row: Dict[str, Any]):
    """Build the tagged question variant for a ``question`` table row."""
    payload: Dict[str, Any] = {
        "id": str(row["id"]),
        "category_id": str(row["category_id"]),
        "type": str(row["type"]),
        "text": str(row["text"]),
        "help_text": row.get("help_text"),
        "required": bool(row.get("is_required")),
        "sort_order": int(row.get("sort_order") or 0),
    }
    settings = _parse_settings(row.get("settings_json"))
    if settings and payload["type"] in {"sliding_scale", "rating_scale", "open_text"}:
        payload["settings"] = settings
    return _QUESTION_ADAPTER.validate_python(payload)


def load_catalog(assessment_id: str, engine: Optional[Engine] = None) -> QuestionCatalog:
    """Load categories, questions and options for ``assessment_id``.

    Raises CatalogLoadError when a stored question cannot be interpreted,
    for example an unknown question type.
    """
    eng = engine or get_engine()
    with eng.connect() as conn:
        cat_rows = conn.execute(
            sql_text(
                "SELECT id, name, sort_order, colour, icon, description, include_in_total "
                "FROM category WHERE assessment_id = :aid ORDER BY sort_order ASC, id ASC"
            ),
            {"aid": assessment_id},
        ).mappings().all()
        q_rows = conn.execute(
            sql_text(
                "SELECT id, category_id, type, text, help_text, is_required, sort_order, settings_json "
                "FROM question WHERE assessment_id = :aid ORDER BY sort_order ASC, id ASC"
            ),
            {"aid": assessment_id},
        ).mappings().all()
        opt_rows = conn.execute(
            sql_text(
                "SELECT o.id, o.question_id, o.text, o.points, o.sort_order, o.image_url "
                "FROM answer_option o JOIN question q ON q.id = o.question_id "
                "WHERE q.assessment_id = :aid ORDER BY o.sort_order ASC, o.id ASC"
            ),
            {"aid": assessment_id},
        ).mappings().all()

    try:
        categories = [
            Category(
                id=str(r["id"]),
                name=str(r["name"]),
                sort_order=int(r["sort_order"] or 0),
                colour=r["colour"],
                icon=r["icon"],
                description=r["description"],
                include_in_total=bool(r["include_in_total"]) if r["include_in_total"] is not None else True,
            )
            for r in cat_rows
        ]
        questions = [question_from_row(dict(r)) for r in q_rows]
        options = [
            AnswerOption(
                id=str(r["id"]),
                question_id=str(r["question_id"]),
                text=str(r["text"]),
                points=int(r["points"] or 0),
                sort_order=int(r["sort_order"] or 0),
                image_url=r["image_url"],
            )
            for r in opt_rows
        ]
    except PydanticValidationError as exc:
        logger.error("catalog_load_invalid assessment=%s", assessment_id, exc_info=True)
        raise CatalogLoadError(f"catalog for {assessment_id} is invalid: {exc}") from exc

    logger.info(
        "catalog_loaded assessment=%s categories=%s questions=%s options=%s",
        assessment_id,
        len(categories),
        len(questions),
        len(options),
    )
    return QuestionCatalog(
        assessment_id=assessment_id,
        categories=categories,
        questions=questions,
        options=options,
    )


def load_tiers(assessment_id: str, engine: Optional[Engine] = None) -> List[ScoreTier]:
    eng = engine or get_engine()
    with eng.connect() as conn:
        rows = conn.execute(
            sql_text(
                "SELECT id, label, min_pct, max_pct, colour, description, sort_order "
                "FROM score_tier WHERE assessment_id = :aid ORDER BY sort_order ASC, id ASC"
            ),
            {"aid": assessment_id},
        ).mappings().all()
    return [
        ScoreTier(
            id=str(r["id"]),
            label=str(r["label"]),
            min_pct=int(r["min_pct"]),
            max_pct=int(r["max_pct"]),
            colour=r["colour"],
            description=r["description"],
            sort_order=int(r["sort_order"] or 0),
        )
        for r in rows
    ]


def replace_catalog(
    catalog: QuestionCatalog,
    tiers: Sequence[ScoreTier] = (),
    engine: Optional[Engine] = None,
) -> None:
    """Replace the stored catalog and tiers of ``catalog.assessment_id`` in one transaction."""
    aid = catalog.assessment_id
    eng = engine or get_engine()
    with eng.begin() as conn:
        conn.execute(
            sql_text(
                "DELETE FROM answer_option WHERE question_id IN "
                "(SELECT id FROM question WHERE assessment_id = :aid)"
            ),
            {"aid": aid},
        )
        conn.execute(sql_text("DELETE FROM question WHERE assessment_id = :aid"), {"aid": aid})
        conn.execute(sql_text("DELETE FROM category WHERE assessment_id = :aid"), {"aid": aid})
        conn.execute(sql_text("DELETE FROM score_tier WHERE assessment_id = :aid"), {"aid": aid})
        for cat in catalog.categories:
            conn.execute(
                sql_text(
                    "INSERT INTO category (id, assessment_id, name, sort_order, colour, icon, description, include_in_total) "
                    "VALUES (:id, :aid, :name, :sort_order, :colour, :icon, :description, :include_in_total)"
                ),
                {"aid": aid, **cat.model_dump()},
            )
        for q in catalog.questions:
            settings = getattr(q, "settings", None)
            conn.execute(
                sql_text(
                    "INSERT INTO question (id, assessment_id, category_id, type, text, help_text, is_required, sort_order, settings_json) "
                    "VALUES (:id, :aid, :category_id, :type, :text, :help_text, :is_required, :sort_order, :settings_json)"
                ),
                {
                    "id": q.id,
                    "aid": aid,
                    "category_id": q.category_id,
                    "type": q.type,
                    "text": q.text,
                    "help_text": q.help_text,
                    "is_required": q.required,
                    "sort_order": q.sort_order,
                    "settings_json": json.dumps(settings.model_dump()) if settings is not None else None,
                },
            )
        for opt in catalog.options:
            conn.execute(
                sql_text(
                    "INSERT INTO answer_option (id, question_id, text, points, sort_order, image_url) "
                    "VALUES (:id, :question_id, :text, :points, :sort_order, :image_url)"
                ),
                opt.model_dump(),
            )
        for tier in tiers:
            conn.execute(
                sql_text(
                    "INSERT INTO score_tier (id, assessment_id, label, min_pct, max_pct, colour, description, sort_order) "
                    "VALUES (:id, :aid, :label, :min_pct, :max_pct, :colour, :description, :sort_order)"
                ),
                {"aid": aid, **tier.model_dump(), "id": tier.id or f"{aid}:{tier.sort_order}:{tier.label}"},
            )
    logger.info(
        "catalog_replaced assessment=%s categories=%s questions=%s tiers=%s",
        aid,
        len(catalog.categories),
        len(catalog.questions),
        len(tiers),
    )


__all__ = [
    "CatalogLoadError",
    "question_from_row",
    "load_catalog",
    "load_tiers",
    "replace_catalog",
]
