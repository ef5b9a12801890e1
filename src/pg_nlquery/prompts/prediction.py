"""Prompt builder for predictor-backed SQL generation."""

from __future__ import annotations

import json
from dataclasses import dataclass

from pg_nlquery.schema.description import describe_schema
from pg_nlquery.schema.model import SchemaModel


class PromptBuildError(RuntimeError):
    """Raised when a prediction prompt cannot be built."""


@dataclass(frozen=True)
class PromptBundle:
    """Inspectable prompt bundle used by the predictor adapter."""

    question: str
    schema_description: str
    conversation_context: str
    output_contract_json: str
    system_prompt: str
    user_prompt: str


_OUTPUT_CONTRACT = {
    "type": "object",
    "required": ["sql", "confidence"],
    "properties": {
        "sql": {
            "type": "string",
            "description": "A single PostgreSQL statement. No markdown.",
        },
        "confidence": {
            "type": "number",
            "minimum": 0.0,
            "maximum": 1.0,
            "description": "Estimated probability that the SQL answers the question.",
        },
        "assumptions": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Short assumptions used to map the question to the schema.",
        },
        "tables_used": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Fully-qualified tables referenced by the SQL.",
        },
    },
}


def build_prediction_prompt(
    question: str,
    schema: SchemaModel | None,
    *,
    context: str = "",
) -> PromptBundle:
    """Build prompts grounded in the schema description and recent turns."""
    normalized_question = question.strip()
    if not normalized_question:
        raise PromptBuildError("Question cannot be empty.")
    if schema is None or not schema.tables:
        raise PromptBuildError("A schema with at least one table is required.")

    schema_description = describe_schema(schema)
    output_contract_json = json.dumps(_OUTPUT_CONTRACT, indent=2, sort_keys=True)

    system_prompt = (
        "You are a PostgreSQL SQL generation assistant. "
        "Output JSON only and follow the response contract exactly. "
        "Report a low confidence when the schema does not answer the question."
    )

    sections = [
        "Task: Convert the natural language question into one PostgreSQL query.",
        "Constraints:\n"
        "- Use only tables and columns from the schema below.\n"
        "- Quote identifiers as \"schema\".\"table\".\n"
        "- Add LIMIT 50 for row listings.",
    ]
    if schema.has_spatial_extension:
        sections.append("PostGIS functions (ST_*) may be used on geometry columns.")
    if context.strip():
        sections.append(context.strip())
    sections.extend(
        [
            f"Question:\n{normalized_question}",
            schema_description.strip(),
            f"Response contract (JSON Schema-like):\n{output_contract_json}",
            "Return only a JSON object matching the contract.",
        ]
    )

    return PromptBundle(
        question=normalized_question,
        schema_description=schema_description,
        conversation_context=context,
        output_contract_json=output_contract_json,
        system_prompt=system_prompt,
        user_prompt="\n\n".join(sections),
    )
