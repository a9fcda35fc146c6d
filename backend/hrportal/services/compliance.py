"""
Malaysian statutory payroll deductions.

Rates in force for 2024:
- EPF (KWSP): employee 11% capped at RM693, employer 12% capped at RM756
- SOCSO (PERKESO): employee 0.5%, employer 1.75%, on wages up to RM4,000
- EIS: employee 0.2% on wages up to RM4,000
- PCB income tax: progressive annual brackets, charged monthly
"""

from dataclasses import dataclass, asdict

EPF_EMPLOYEE_RATE = 0.11
EPF_EMPLOYER_RATE = 0.12
EPF_EMPLOYEE_CAP = 693.0
EPF_EMPLOYER_CAP = 756.0

SOCSO_EMPLOYEE_RATE = 0.005
SOCSO_EMPLOYER_RATE = 0.0175
SOCSO_WAGE_CEILING = 4000.0

EIS_RATE = 0.002
EIS_WAGE_CEILING = 4000.0

# (upper bound of chargeable income, base tax at the lower bound, marginal rate)
TAX_BRACKETS = (
    (5_000, 0.0, 0.0),
    (20_000, 0.0, 0.01),
    (35_000, 150.0, 0.03),
    (50_000, 600.0, 0.06),
    (70_000, 1_500.0, 0.11),
    (100_000, 3_700.0, 0.19),
    (400_000, 9_400.0, 0.25),
    (600_000, 84_400.0, 0.26),
    (2_000_000, 136_400.0, 0.28),
)
TOP_RATE = 0.30


@dataclass(frozen=True)
class PayrollBreakdown:
    gross_salary: float
    epf_employee: float
    epf_employer: float
    socso_employee: float
    socso_employer: float
    eis_amount: float
    tax_amount: float
    net_salary: float

    def to_dict(self) -> dict:
        return asdict(self)


def calculate_annual_tax(annual_income: float) -> float:
    """Progressive personal income tax on a year's chargeable income."""
    lower = 0.0
    for upper, base, rate in TAX_BRACKETS:
        if annual_income <= upper:
            return base + max(annual_income - lower, 0.0) * rate
        lower = upper
    top_base = TAX_BRACKETS[-1][1] + (TAX_BRACKETS[-1][0] - TAX_BRACKETS[-2][0]) * TAX_BRACKETS[-1][2]
    return top_base + (annual_income - lower) * TOP_RATE


def _money(value: float) -> float:
    return round(value, 2)


def calculate_payroll(basic_salary: float, allowances: float = 0.0, deductions: float = 0.0) -> PayrollBreakdown:
    """
    Compute one month's statutory deductions and net pay.

    Tax is assessed on twelve times the month's taxable income (gross less EPF,
    SOCSO and voluntary deductions) and divided back to a monthly figure.
    """
    gross = basic_salary + allowances

    epf_employee = min(gross * EPF_EMPLOYEE_RATE, EPF_EMPLOYEE_CAP)
    epf_employer = min(gross * EPF_EMPLOYER_RATE, EPF_EMPLOYER_CAP)

    socso_wage = min(gross, SOCSO_WAGE_CEILING)
    socso_employee = socso_wage * SOCSO_EMPLOYEE_RATE
    socso_employer = socso_wage * SOCSO_EMPLOYER_RATE

    eis = min(gross, EIS_WAGE_CEILING) * EIS_RATE

    taxable_monthly = gross - epf_employee - socso_employee - deductions
    tax = calculate_annual_tax(taxable_monthly * 12) / 12 if taxable_monthly > 0 else 0.0

    net = gross - epf_employee - socso_employee - eis - tax - deductions

    return PayrollBreakdown(
        gross_salary=_money(gross),
        epf_employee=_money(epf_employee),
        epf_employer=_money(epf_employer),
        socso_employee=_money(socso_employee),
        socso_employer=_money(socso_employer),
        eis_amount=_money(eis),
        tax_amount=_money(tax),
        net_salary=_money(net),
    )
