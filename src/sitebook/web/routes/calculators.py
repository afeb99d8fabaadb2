"""Calculator endpoints for Sitebook.

Stateless helpers for the field: the framing cut-list calculator and the
imperial measurement parser and formatter. Measurement inputs accept either
numbers (decimal inches) or tape-measure strings such as ``3' 4-1/2"``.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as http_status
from pydantic import BaseModel, Field

from sitebook.calculators.fractions import parse_measurement, to_fraction_string
from sitebook.calculators.framing import (
    build_cut_list,
    calculate_framing,
    render_cut_list_text,
    spec_from_inputs,
)
from sitebook.config import SitebookConfig
from sitebook.logging import get_logger
from sitebook.web.dependencies import get_config

logger = get_logger(__name__)

Measurement = float | str | None


class FramingRequest(BaseModel):
    """Framing calculator inputs. Omitted fields take the calculator defaults."""

    opening_type: str | None = None
    ro_width: Measurement = None
    ro_height: Measurement = None
    sill_height: Measurement = None
    wall_height: Measurement = None
    header_size: str | None = None
    header_type: str | None = None
    top_plate_config: str | None = None
    stud_spacing: int | None = None
    sill_style: str | None = None
    sloped_sill_thickness: Measurement = None
    stud_material: str | None = None
    header_tight: bool | None = None
    finish_floor: Measurement = None
    opening_tag: str | None = None
    precision: int | None = None


class ParseRequest(BaseModel):
    value: Measurement


class FormatRequest(BaseModel):
    value: float
    precision: int | None = None
    show_feet: bool = False
    auto_feet: bool = True


def _check_precision(precision: int | None, config: SitebookConfig) -> int:
    if precision is None:
        return config.calculator.precision
    if precision < 1:
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid precision: {precision}",
        )
    return precision


def create_calculators_router() -> APIRouter:
    """Create calculators router.

    Routes:
        POST /calculators/framing - Framing member lengths and cut list
        POST /calculators/measurements/parse - Parse a measurement string
        POST /calculators/measurements/format - Format decimal inches
    """
    router = APIRouter(prefix="/calculators", tags=["calculators"])

    @router.post("/framing")
    async def framing(
        request: FramingRequest,
        config: SitebookConfig = Depends(get_config),  # noqa: B008
    ) -> dict[str, Any]:
        """Calculate framing for a rough opening.

        Returns ``calculations: null`` and an empty cut list when a
        required dimension is missing.
        """
        precision = _check_precision(request.precision, config)
        inputs = request.model_dump(exclude={"precision"}, exclude_none=True)
        try:
            spec, partial_fields = spec_from_inputs(**inputs)
        except TypeError as exc:
            raise HTTPException(
                status_code=http_status.HTTP_400_BAD_REQUEST,
                detail=str(exc),
            ) from None

        result = calculate_framing(spec)
        if result is None:
            logger.info("framing_inputs_incomplete", opening_type=spec.opening_type)
            return {
                "calculations": None,
                "cut_list": [],
                "warnings": [],
                "report": None,
                "partial_fields": partial_fields,
            }

        entries = build_cut_list(result, precision)
        logger.info(
            "framing_calculated",
            opening_type=spec.opening_type,
            ro_width=spec.ro_width,
            ro_height=spec.ro_height,
            warning_count=len(result.warnings),
        )
        return {
            "calculations": {
                "king_stud_length": result.king_stud_length,
                "jack_stud_length": result.jack_stud_length,
                "header_length": result.header_length,
                "header_depth": result.header_depth,
                "header_gap": result.header_gap,
                "header_filler_length": result.header_filler_length,
                "top_cripple_length": result.top_cripple_length,
                "top_cripple_qty": result.top_cripple_qty,
                "sill_length": result.sill_length,
                "sill_thickness": result.sill_thickness,
                "bottom_cripple_length": result.bottom_cripple_length,
                "bottom_cripple_qty": result.bottom_cripple_qty,
                "jacks_per_side": result.jacks_per_side,
            },
            "cut_list": [
                {
                    "name": entry.name,
                    "length": entry.length,
                    "qty": entry.qty,
                    "material": entry.material,
                    "note": entry.note,
                    "highlight": entry.highlight,
                }
                for entry in entries
            ],
            "warnings": [{"type": w.type, "message": w.message} for w in result.warnings],
            "report": render_cut_list_text(spec, entries, precision),
            "partial_fields": partial_fields,
        }

    @router.post("/measurements/parse")
    async def parse(request: ParseRequest) -> dict[str, Any]:
        parsed = parse_measurement(request.value)
        return {"value": parsed.value, "partial": parsed.partial}

    @router.post("/measurements/format")
    async def format_measurement(
        request: FormatRequest,
        config: SitebookConfig = Depends(get_config),  # noqa: B008
    ) -> dict[str, Any]:
        precision = _check_precision(request.precision, config)
        return {
            "value": request.value,
            "text": to_fraction_string(
                request.value,
                show_feet=request.show_feet,
                auto_feet=request.auto_feet,
                precision=precision,
            ),
        }

    return router
