# api/target_validators.py
"""
Target list validation.

Strict rules (submit / non-draft create):
- 3 to 5 targets
- taskDescription 10-500 chars, kpi 5-200 chars (after trimming)
- weight integer 1-100, weights summing to exactly 100
- difficulty one of L1, L2, L3

Draft saves only check that targets is a list of objects so that
incomplete work can be saved.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, List, Optional

from django.conf import settings
from django.utils import timezone

from .target_models import Difficulty, DIFFICULTY_MULTIPLIERS

MIN_TARGETS = 3
MAX_TARGETS = 5
REQUIRED_TOTAL_WEIGHT = 100

TASK_DESCRIPTION_LENGTH = (10, 500)
KPI_LENGTH = (5, 200)
WEIGHT_RANGE = (1, 100)
FEEDBACK_LENGTH = (10, 1000)


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def as_dict(self):
        return {'field': self.field, 'message': self.message}


@dataclass
class ValidationResult:
    value: Any = None
    errors: List[FieldError] = field(default_factory=list)

    @property
    def ok(self):
        return not self.errors


@dataclass(frozen=True)
class Target:
    task_description: str
    kpi: str
    weight: int
    difficulty: Difficulty

    @property
    def multiplier(self):
        return self.difficulty.multiplier


def _join(path, name):
    return f"{path}.{name}" if path else name


def _check_text(data, key, bounds, label, path, errors):
    raw = data.get(key)
    if not isinstance(raw, str):
        errors.append(FieldError(_join(path, key), f"{label} is required"))
        return None

    text = raw.strip()
    low, high = bounds
    if len(text) < low:
        errors.append(FieldError(_join(path, key), f"{label} must be at least {low} characters"))
    elif len(text) > high:
        errors.append(FieldError(_join(path, key), f"{label} must not exceed {high} characters"))
    return text


def _coerce_weight(raw):
    # bool is an int subclass; true/false are not weights
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    return None


def validate_target(data, path=''):
    """Validate one target entry. Returns cleaned Target in value when ok."""
    if not isinstance(data, Mapping):
        return ValidationResult(errors=[FieldError(path or 'target', 'Target must be an object')])

    errors = []
    task_description = _check_text(
        data, 'taskDescription', TASK_DESCRIPTION_LENGTH, 'Task description', path, errors
    )
    kpi = _check_text(data, 'kpi', KPI_LENGTH, 'KPI', path, errors)

    weight = _coerce_weight(data.get('weight'))
    if weight is None:
        errors.append(FieldError(_join(path, 'weight'), 'Weight must be an integer'))
    elif weight < WEIGHT_RANGE[0]:
        errors.append(FieldError(_join(path, 'weight'), f'Weight must be at least {WEIGHT_RANGE[0]}%'))
    elif weight > WEIGHT_RANGE[1]:
        errors.append(FieldError(_join(path, 'weight'), f'Weight must not exceed {WEIGHT_RANGE[1]}%'))

    difficulty = data.get('difficulty')
    if difficulty not in Difficulty.values:
        errors.append(FieldError(_join(path, 'difficulty'), 'Difficulty must be one of L1, L2, L3'))

    if errors:
        return ValidationResult(errors=errors)

    return ValidationResult(value=Target(
        task_description=task_description,
        kpi=kpi,
        weight=weight,
        difficulty=Difficulty(difficulty),
    ))


def validate_target_list(targets):
    """Strict validation used for submission. Reports every violated rule."""
    if not isinstance(targets, (list, tuple)):
        return ValidationResult(errors=[FieldError('targets', 'Targets must be an array')])

    errors = []
    if len(targets) < MIN_TARGETS:
        errors.append(FieldError('targets', f'You must have at least {MIN_TARGETS} targets'))
    elif len(targets) > MAX_TARGETS:
        errors.append(FieldError('targets', f'You cannot have more than {MAX_TARGETS} targets'))

    cleaned = []
    for index, item in enumerate(targets):
        result = validate_target(item, path=f'targets[{index}]')
        if result.ok:
            cleaned.append(result.value)
        else:
            errors.extend(result.errors)

    total_weight = sum(
        weight for weight in (
            _coerce_weight(item.get('weight')) if isinstance(item, Mapping) else None
            for item in targets
        )
        if weight is not None
    )
    if total_weight != REQUIRED_TOTAL_WEIGHT:
        errors.append(FieldError(
            'targets',
            f'Total weight of all targets must equal exactly {REQUIRED_TOTAL_WEIGHT}% (currently {total_weight}%)'
        ))

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(value=cleaned)


def validate_draft_targets(targets):
    """Relaxed validation for draft saves: a list of objects, nothing more."""
    if not isinstance(targets, (list, tuple)):
        return ValidationResult(errors=[FieldError('targets', 'Targets must be an array')])

    errors = [
        FieldError(f'targets[{index}]', 'Target must be an object')
        for index, item in enumerate(targets)
        if not isinstance(item, Mapping)
    ]
    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(value=[dict(item) for item in targets])


def validate_feedback(feedback):
    if not isinstance(feedback, str) or not feedback.strip():
        return ValidationResult(errors=[
            FieldError('feedback', 'Feedback is required when requesting revisions')
        ])

    text = feedback.strip()
    low, high = FEEDBACK_LENGTH
    if len(text) < low:
        return ValidationResult(errors=[FieldError('feedback', f'Feedback must be at least {low} characters')])
    if len(text) > high:
        return ValidationResult(errors=[FieldError('feedback', f'Feedback must not exceed {high} characters')])
    return ValidationResult(value=text)


def validate_cycle_year(value):
    """None means the current calendar year."""
    config = getattr(settings, 'APPRAISAL_SETTINGS', {})
    low = config.get('MIN_CYCLE_YEAR', 2020)
    high = config.get('MAX_CYCLE_YEAR', 2100)

    if value is None:
        return ValidationResult(value=timezone.now().year)

    year = _coerce_weight(value)
    if year is None:
        return ValidationResult(errors=[FieldError('cycleYear', 'Cycle year must be an integer')])
    if not low <= year <= high:
        return ValidationResult(errors=[
            FieldError('cycleYear', f'Cycle year must be between {low} and {high}')
        ])
    return ValidationResult(value=year)


def summarize_weights(targets) -> dict:
    """Weight indicator data for a (possibly incomplete) target list."""
    total = 0
    weighted_difficulty = 0.0
    for item in targets or []:
        if not isinstance(item, Mapping):
            continue
        weight = _coerce_weight(item.get('weight'))
        if weight is None:
            continue
        total += weight
        multiplier: Optional[float] = DIFFICULTY_MULTIPLIERS.get(item.get('difficulty'))
        if multiplier is not None:
            weighted_difficulty += weight * multiplier / 100

    return {
        'total_weight': total,
        'remaining': REQUIRED_TOTAL_WEIGHT - total,
        'is_balanced': total == REQUIRED_TOTAL_WEIGHT,
        'over_by': max(total - REQUIRED_TOTAL_WEIGHT, 0),
        'under_by': max(REQUIRED_TOTAL_WEIGHT - total, 0),
        'weighted_difficulty': round(weighted_difficulty, 4),
    }
