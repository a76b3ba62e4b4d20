"""HTTP routes for the Flask API."""

from http import HTTPStatus
from typing import Any, Dict, List

from flask import Blueprint, current_app, jsonify, request
from loguru import logger
from pydantic import ValidationError

from commission_engine import __version__
from commission_engine.config import Settings
from commission_engine.core.rates import RateCache, RateTable
from commission_engine.domain.batch import BatchFailure, BatchItem, run_batched
from commission_engine.domain.schedule import InvalidInput, build_schedule
from commission_engine.models import LiquidityCycle
from commission_engine.schemas.commission import (
    BatchCommissionRequest,
    BatchCommissionResponse,
    BatchFailureView,
    CommissionRequest,
    CommissionResponse,
    PingResponse,
    RateLookupResponse,
)

api_bp = Blueprint("api", __name__)


def _settings() -> Settings:
    return current_app.config["COMMISSION_SETTINGS"]


def _rate_table() -> RateTable:
    return current_app.extensions["rate_table"]


def _use_rate_table(payload: CommissionRequest) -> bool:
    if payload.useRateTable is None:
        return _settings().use_rate_table
    return payload.useRateTable


def _to_batch_item(payload: CommissionRequest, cache: RateCache) -> BatchItem:
    """Validate one request and resolve its missing rates from the table."""
    try:
        investment = payload.to_investment()
        rates = payload.to_rates()
    except ValidationError as exc:
        raise InvalidInput.from_validation_error(exc) from exc

    if _use_rate_table(payload):
        rates = cache.resolve(rates, investment.commitment_period_months, investment.liquidity_cycle)
    return investment, rates


@api_bp.errorhandler(ValidationError)
def _handle_validation_error(exc: ValidationError):
    """Convert Pydantic validation errors into JSON responses."""
    return jsonify({"detail": exc.errors(include_url=False)}), HTTPStatus.UNPROCESSABLE_ENTITY


@api_bp.errorhandler(InvalidInput)
def _handle_invalid_input(exc: InvalidInput):
    logger.info(f"Rejected commission input: {exc}")
    return jsonify({"error": exc.errors}), HTTPStatus.BAD_REQUEST


@api_bp.get("/ping")
def ping() -> Any:
    """Health-check endpoint."""
    response = PingResponse(message="pong", version=__version__)
    return jsonify(response.model_dump())


@api_bp.post("/commissions/calculate")
def calculate_commission() -> Any:
    """Payment schedule and per-role split for a single investment."""
    raw_payload: Dict[str, Any] = request.get_json(force=True, silent=False)
    payload = CommissionRequest.model_validate(raw_payload)

    with RateCache(_rate_table()) as cache:
        investment, rates = _to_batch_item(payload, cache)

    settings = _settings()
    calculation = build_schedule(investment, rates, settings.default_role_rate, settings.eligibility_days)
    response = CommissionResponse.from_calculation(calculation)
    return jsonify(response.model_dump(mode="json"))


@api_bp.post("/commissions/batch")
def calculate_commissions_batch() -> Any:
    """Schedules for many investments; bad items are reported, not fatal."""
    raw_payload: Dict[str, Any] = request.get_json(force=True, silent=False)
    payload = BatchCommissionRequest.model_validate(raw_payload)
    settings = _settings()

    items: List[BatchItem] = []
    rejected: List[BatchFailure] = []
    positions: List[int] = []
    with RateCache(_rate_table()) as cache:
        for index, item in enumerate(payload.investments):
            try:
                items.append(_to_batch_item(item, cache))
                positions.append(index)
            except InvalidInput as exc:
                rejected.append(
                    BatchFailure(index=index, investment_id=item.investmentId, error=str(exc))
                )

    result = run_batched(
        items,
        batch_size=payload.batchSize or settings.batch_size,
        default_rate=settings.default_role_rate,
        eligibility_days=settings.eligibility_days,
    )

    failures = rejected + [
        BatchFailure(index=positions[failure.index], investment_id=failure.investment_id, error=failure.error)
        for failure in result.failures
    ]
    response = BatchCommissionResponse(
        results=[CommissionResponse.from_calculation(calc) for calc in result.calculations],
        failures=[
            BatchFailureView(index=failure.index, investmentId=failure.investment_id, error=failure.error)
            for failure in sorted(failures, key=lambda failure: failure.index)
        ],
    )
    return jsonify(response.model_dump(mode="json"))


@api_bp.get("/rates")
def lookup_rates() -> Any:
    """Rates the table offers for a commitment period and liquidity cycle."""
    period = request.args.get("period", type=int)
    if period is None or period < 1:
        raise InvalidInput(["period: a positive number of months is required"])

    raw_liquidity = request.args.get("liquidity", LiquidityCycle.MONTHLY.value)
    liquidity = LiquidityCycle.parse(raw_liquidity)
    if liquidity is None:
        raise InvalidInput([f"liquidity: unknown liquidity cycle {raw_liquidity!r}"])

    table = _rate_table()
    rates = table.rates_for(period, liquidity)
    options = table.available_liquidity_options(period)

    response = RateLookupResponse(
        periodMonths=period,
        liquidityCycle=liquidity.value,
        investorRate=rates.investor_rate,
        advisorRate=rates.advisor_rate,
        officeRate=rates.office_rate,
        availableLiquidity=[option.value for option in options],
    )
    return jsonify(response.model_dump(mode="json"))
