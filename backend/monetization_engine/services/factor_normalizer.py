"""
Factor Normalizer
요인 / 가중치 입력을 유효 범위로 보정

- 요인: 0-100 클램프, 누락 값은 50
- 가중치: 기본 가중치 위에 병합, 합계가 1.0 에서 벗어나면 비율 유지하며 재조정
- 엄격 검증(validate_*)은 잘못된 필드를 ValidationError 로 알림
"""
import logging
import math
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel

from monetization_engine.core.exceptions import ValidationError
from monetization_engine.models.monetization import (
    FACTOR_NAMES,
    MonetizationFactors,
    MonetizationWeights,
)

logger = logging.getLogger(__name__)

DEFAULT_FACTOR_VALUE = 50.0
WEIGHT_SUM_TOLERANCE = 1e-3

DEFAULT_WEIGHTS: Dict[str, float] = {
    "market_size": 0.25,
    "payment_willingness": 0.20,
    "competition_level": 0.15,
    "revenue_models": 0.15,
    "customer_acquisition_cost": 0.15,
    "customer_lifetime_value": 0.10,
}

PartialValues = Union[Mapping[str, Any], BaseModel, None]


def _as_mapping(values: PartialValues) -> Dict[str, Any]:
    if values is None:
        return {}
    if isinstance(values, BaseModel):
        return values.model_dump(exclude_none=True)
    return dict(values)


def _to_number(value: Any) -> Optional[float]:
    """숫자로 해석할 수 없으면 None"""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def normalize_factors(partial: PartialValues) -> MonetizationFactors:
    """
    요인 값 정규화 (실패하지 않음)

    Args:
        partial: 일부 요인만 담긴 dict 또는 모델

    Returns:
        6개 요인이 모두 채워진 MonetizationFactors
    """
    raw = _as_mapping(partial)
    values = {}
    for name in FACTOR_NAMES:
        number = _to_number(raw.get(name))
        values[name] = DEFAULT_FACTOR_VALUE if number is None else _clamp(number, 0.0, 100.0)
    return MonetizationFactors(**values)


def rescale_weights(values: Mapping[str, float]) -> Tuple[Dict[str, float], bool]:
    """
    가중치 합계 검사 및 재조정

    Returns:
        (가중치, 재조정 여부). 합계가 0 이면 기본 가중치로 대체한다.
    """
    total = sum(values[name] for name in FACTOR_NAMES)

    if abs(total - 1.0) <= WEIGHT_SUM_TOLERANCE:
        return {name: values[name] for name in FACTOR_NAMES}, False

    if total <= 0:
        logger.warning("Weights sum to zero, falling back to default weights")
        return dict(DEFAULT_WEIGHTS), True

    return {name: min(1.0, values[name] / total) for name in FACTOR_NAMES}, True


def normalize_weights(partial: PartialValues = None) -> MonetizationWeights:
    """
    기본 가중치 위에 입력 가중치를 병합하고 합계를 1.0 으로 맞춤 (실패하지 않음)
    """
    merged = dict(DEFAULT_WEIGHTS)
    for name, value in _as_mapping(partial).items():
        if name not in merged:
            continue
        number = _to_number(value)
        if number is not None:
            merged[name] = _clamp(number, 0.0, 1.0)

    weights, rescaled = rescale_weights(merged)
    if rescaled:
        logger.warning(f"Weights do not sum to 1.0 ({sum(merged.values()):.4f}), normalized")

    return MonetizationWeights(**weights)


def validate_factors(data: PartialValues) -> MonetizationFactors:
    """엄격 검증: 6개 요인이 모두 0-100 숫자여야 함"""
    raw = _as_mapping(data)
    for name in FACTOR_NAMES:
        number = _to_number(raw.get(name))
        if number is None:
            raise ValidationError(f"요인 값이 없거나 숫자가 아닙니다: {name}", field=name)
        if not 0 <= number <= 100:
            raise ValidationError(f"요인 값은 0-100 범위여야 합니다: {name}={number}", field=name)
    return MonetizationFactors(**{name: float(raw[name]) for name in FACTOR_NAMES})


def validate_weights(data: PartialValues) -> MonetizationWeights:
    """엄격 검증: 6개 가중치가 모두 0-1 이고 합계가 1.0"""
    raw = _as_mapping(data)
    values = {}
    for name in FACTOR_NAMES:
        number = _to_number(raw.get(name))
        if number is None:
            raise ValidationError(f"가중치 값이 없거나 숫자가 아닙니다: {name}", field=name)
        if not 0 <= number <= 1:
            raise ValidationError(f"가중치는 0-1 범위여야 합니다: {name}={number}", field=name)
        values[name] = number

    total = sum(values.values())
    if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
        raise ValidationError(
            f"가중치 합계는 1.0 이어야 합니다 (현재 {total:.4f})",
            field="weights",
            details={"sum": total}
        )
    return MonetizationWeights(**values)
