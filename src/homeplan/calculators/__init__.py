from .affordability import AffordabilityParams, AffordabilityResult, calculate_affordability
from .amortization import monthly_payment, solve_rate_for_break_even
from .refinance import RefiParams, RefiResult, calculate_refinance

__all__ = [
    "AffordabilityParams",
    "AffordabilityResult",
    "calculate_affordability",
    "monthly_payment",
    "solve_rate_for_break_even",
    "RefiParams",
    "RefiResult",
    "calculate_refinance",
]
