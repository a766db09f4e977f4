"""Enumeration types and sentinel strings for the pipeline models."""

from enum import Enum


class SelectionVerdict(str, Enum):
    """Whether a sentence holds at least one specific, verifiable proposition."""

    CONTAINS = "Contains a specific and verifiable proposition"
    DOES_NOT_CONTAIN = "Does NOT contain a specific and verifiable proposition"


class VerifiabilityClass(str, Enum):
    """Verifiability of a single sentence element."""

    VERIFIABLE = "contains verifiable information"
    NOT_VERIFIABLE = "does not contain verifiable information"
    GENERIC_NOT_VERIFIABLE = (
        "it's a generic statement, so it does not contain verifiable information"
    )


class CoverageStatus(str, Enum):
    """How an element is expressed by a claim set."""

    FULLY_COVERED = "fully covered by C"
    PARTIALLY_COVERED = "partially covered by C"
    NOT_COVERED = "not covered by C"
    CORRECTLY_EXCLUDED = "not verifiable - correctly not covered by C"
    INCORRECTLY_INCLUDED = "not verifiable - incorrectly covered by C"


class EntailmentConclusion(str, Enum):
    """Terminal label of the entailment evaluation."""

    ENTAILS = "S entails all elements of C"
    DOES_NOT_ENTAIL = "S does not entail all elements of C"


class PruneReason(str, Enum):
    """Why a slot stopped flowing through the pipeline."""

    NO_VERIFIABLE_CONTENT = "no_verifiable_content"
    NOT_DISAMBIGUATABLE = "not_disambiguatable"
    NO_BASELINE_CLAIMS = "no_baseline_claims"
    LOADED = "loaded"


# Sentinel strings exchanged with the model
REWRITE_UNCHANGED = "remains unchanged"
REWRITE_NONE = "None"
CANNOT_DECONTEXTUALIZE = "Cannot be decontextualized"

ERROR_PREFIX = "ERROR: "
SKIPPED_PREFIX = "SKIPPED: "


def error_marker(error: BaseException | str) -> str:
    """Render the free-text error marker stored in failed records."""
    return f"{ERROR_PREFIX}{error}"


def normalize_sentinel(text: str) -> str:
    """Lower-case and strip quotes/trailing punctuation for sentinel comparison."""
    return text.strip().strip("\"'").rstrip(".").strip().lower()
