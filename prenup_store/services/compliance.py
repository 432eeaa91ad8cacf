"""
State Compliance Service

Static catalogue of per-jurisdiction prenup requirements plus the checks the
wizard runs before an agreement is signed. Only two rules are machine-checked:
California's 7-day waiting period between execution and marriage and New
York's notarization requirement. Everything else is informational.
"""

import logging
from typing import Any, Dict, List, Mapping, Union

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ValidationError
from ..models import (
    ComplianceResult,
    ExecutionDetails,
    StateCompliance,
    StateRequirement,
    USState,
)

logger = logging.getLogger(__name__)

WAITING_PERIOD = "Seven-Day Waiting Period"
NOTARIZATION = "Acknowledgment or Notarization"

BASE_STEPS = (
    "Basic Information",
    "Asset Disclosure",
    "Debt Disclosure",
    "Income Information",
    "Agreement Terms",
    "Review & Preview",
)


def _written(description: str = "Agreement must be in writing and signed by both parties") -> StateRequirement:
    return StateRequirement(name="Written Agreement", description=description, required=True)


def _voluntary(description: str = "Both parties must enter the agreement voluntarily") -> StateRequirement:
    return StateRequirement(name="Voluntary Execution", description=description, required=True)


STATE_COMPLIANCE: Dict[USState, StateCompliance] = {
    USState.CALIFORNIA: StateCompliance(
        state=USState.CALIFORNIA,
        display_name="California",
        total_steps=8,
        requirements=[
            _written(),
            _voluntary(),
            StateRequirement(
                name="Full Disclosure",
                description="Complete disclosure of assets, debts, and income",
                required=True
            ),
            StateRequirement(
                name=WAITING_PERIOD,
                description="At least 7 days must pass between final agreement and marriage",
                required=True,
                waiting_period_days=7
            ),
            StateRequirement(
                name="Independent Legal Representation",
                description="Recommended but not required",
                required=False
            ),
        ],
        disclosure_requirements=[
            "All assets owned individually",
            "All debts and obligations",
            "Annual income and income sources",
            "Any expected inheritances or gifts",
        ],
        special_rules=[
            "Agreements executed less than 7 days before marriage are voidable",
            "Court will examine fairness at time of enforcement",
            "Waiver of spousal support may be scrutinized more closely",
        ],
    ),
    USState.WASHINGTON: StateCompliance(
        state=USState.WASHINGTON,
        display_name="Washington",
        total_steps=7,
        requirements=[
            _written(),
            _voluntary(),
            StateRequirement(
                name="Full Financial Disclosure",
                description="Complete and accurate disclosure of all assets and debts",
                required=True
            ),
            StateRequirement(
                name="Fair and Reasonable",
                description="Agreement must be fair and reasonable when made",
                required=True
            ),
        ],
        disclosure_requirements=[
            "Complete list of assets with fair market values",
            "All debts and liabilities",
            "Income information",
            "Any business interests",
        ],
        special_rules=[
            "Community property state - agreement affects property rights",
            "Courts will not enforce unconscionable agreements",
            "Full disclosure is strictly required",
        ],
    ),
    USState.NEW_YORK: StateCompliance(
        state=USState.NEW_YORK,
        display_name="New York",
        total_steps=8,
        requirements=[
            _written("Agreement must be in writing"),
            StateRequirement(
                name=NOTARIZATION,
                description="Agreement must be notarized or acknowledged",
                required=True
            ),
            StateRequirement(
                name="Fair and Reasonable",
                description="Agreement must be fair and reasonable when made and enforced",
                required=True
            ),
            StateRequirement(
                name="Full Disclosure",
                description="Fair disclosure of assets and financial obligations",
                required=True
            ),
            StateRequirement(
                name="Independent Legal Representation",
                description="Highly recommended for validity",
                required=False
            ),
        ],
        disclosure_requirements=[
            "Assets and property owned",
            "Income and earning capacity",
            "Debts and financial obligations",
            "Any expected inheritances",
        ],
        notarization_required=True,
        special_rules=[
            "Agreement must be notarized or properly acknowledged",
            "Courts examine fairness at both execution and enforcement",
            "Cannot completely waive maintenance without meeting strict requirements",
        ],
    ),
    USState.WASHINGTON_DC: StateCompliance(
        state=USState.WASHINGTON_DC,
        display_name="Washington D.C.",
        total_steps=7,
        requirements=[
            _written(),
            _voluntary(),
            StateRequirement(
                name="UPAA Compliance",
                description="Must comply with Uniform Premarital Agreement Act",
                required=True
            ),
            StateRequirement(
                name="Financial Disclosure",
                description="Adequate disclosure of assets and obligations",
                required=True
            ),
        ],
        disclosure_requirements=[
            "Assets and property",
            "Debts and financial obligations",
            "Income sources",
        ],
        special_rules=[
            "Follows Uniform Premarital Agreement Act",
            "Agreement unconscionable if lacking disclosure",
            "Cannot adversely affect child support",
        ],
    ),
    USState.VIRGINIA: StateCompliance(
        state=USState.VIRGINIA,
        display_name="Virginia",
        total_steps=7,
        requirements=[
            _written(),
            _voluntary("Both parties must enter the agreement voluntarily without duress"),
            StateRequirement(
                name="Full and Fair Disclosure",
                description="Complete disclosure of assets, debts, and income",
                required=True
            ),
            StateRequirement(
                name="Conscionable Agreement",
                description="Agreement must not be unconscionable",
                required=True
            ),
        ],
        disclosure_requirements=[
            "All assets and their values",
            "All debts and liabilities",
            "Income and earning capacity",
            "Any expected inheritances or gifts",
        ],
        special_rules=[
            "Emphasizes voluntariness and full disclosure",
            "Court will examine unconscionability",
            "Cannot adversely affect child support obligations",
        ],
    ),
}


class StateComplianceService:
    """Lookups and checks against the per-state requirement catalogue."""

    def __init__(self, catalogue: Mapping[USState, StateCompliance] = STATE_COMPLIANCE):
        self.catalogue = catalogue

    def get_state_requirements(self, state: Union[USState, str]) -> StateCompliance:
        """
        Raises:
            ValidationError: ``state`` is not a supported jurisdiction
        """
        try:
            return self.catalogue[USState(state)]
        except (ValueError, KeyError) as e:
            raise ValidationError("Invalid state", errors={'state': str(state)}, original_error=e) from e

    def get_all_states(self) -> List[StateCompliance]:
        return list(self.catalogue.values())

    def validate_state_compliance(
        self,
        state: Union[USState, str],
        agreement_data: Union[ExecutionDetails, Mapping[str, Any]]
    ) -> ComplianceResult:
        """
        Check execution facts against the state's required elements.

        Missing dates skip the waiting-period check; a missing ``notarized``
        flag counts as not notarized.

        Raises:
            ValidationError: Unsupported state or unparseable dates
        """
        compliance = self.get_state_requirements(state)
        details = self._execution_details(agreement_data)
        violations: List[str] = []

        for requirement in compliance.requirements:
            if not requirement.required:
                continue

            if requirement.name == WAITING_PERIOD and compliance.state == USState.CALIFORNIA:
                if details.execution_date and details.marriage_date:
                    days_between = (details.marriage_date - details.execution_date).days
                    if days_between < requirement.waiting_period_days:
                        violations.append(
                            "California requires at least 7 days between agreement execution and marriage"
                        )

            elif requirement.name == NOTARIZATION and compliance.state == USState.NEW_YORK:
                if not details.notarized:
                    violations.append("New York requires the agreement to be notarized or acknowledged")

        if violations:
            logger.info(f"Compliance check for {compliance.state.value} found {len(violations)} violation(s)")
        return ComplianceResult(valid=not violations, violations=violations)

    def get_required_steps(self, state: Union[USState, str]) -> List[str]:
        """Wizard step names for the state, ending with signatures."""
        compliance = self.get_state_requirements(state)
        steps = list(BASE_STEPS)
        if compliance.notarization_required:
            steps.append("Notarization")
        steps.append("Signatures")
        return steps

    @staticmethod
    def _execution_details(agreement_data) -> ExecutionDetails:
        if isinstance(agreement_data, ExecutionDetails):
            return agreement_data
        try:
            return ExecutionDetails.model_validate(dict(agreement_data))
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid agreement data: {e}", original_error=e) from e
