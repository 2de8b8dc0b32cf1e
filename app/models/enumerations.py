from enum import Enum
from typing import Optional


class QuestionType(str, Enum):
    # Numeric / scale
    RATING = "rating"
    NPS = "nps"
    LIKERT = "likert"
    OPINION_SCALE = "opinion_scale"
    SLIDER = "slider"
    NUMBER = "number"
    CONSTANT_SUM = "constant_sum"
    # Choice
    MULTIPLE_CHOICE = "multiple_choice"
    DROPDOWN = "dropdown"
    CHECKBOX = "checkbox"
    IMAGE_CHOICE = "image_choice"
    YES_NO = "yes_no"
    MATRIX = "matrix"
    RANKING = "ranking"
    # Free text (scored by the external semantic scorer)
    TEXT = "text"
    TEXTAREA = "textarea"
    # Never scored
    EMAIL = "email"
    PHONE = "phone"
    URL = "url"
    DATE = "date"
    TIME = "time"
    FILE_UPLOAD = "file_upload"
    SIGNATURE = "signature"
    SECTION = "section"

    @classmethod
    def parse(cls, value: str) -> Optional["QuestionType"]:
        """Return the matching member, or None for types this engine does not know."""
        try:
            return cls(value)
        except ValueError:
            return None


FREE_TEXT_TYPES = frozenset({QuestionType.TEXT, QuestionType.TEXTAREA})


class DiagnosticCode(str, Enum):
    CONFIGURATION_ERROR = "ConfigurationError"
    UNKNOWN_CATEGORY_REFERENCE = "UnknownCategoryReference"
    UNPARSEABLE_ANSWER = "UnparseableAnswer"
    NO_SCORABLE_DATA = "NoScorableData"
    EXTERNAL_SCORER_FAILURE = "ExternalScorerFailure"
    SCORING_DISABLED = "ScoringDisabled"
    SCORABLE_WITHOUT_CATEGORY = "ScorableWithoutCategory"
    CATEGORY_WITHOUT_SCORABLE = "CategoryWithoutScorable"
    UNSUPPORTED_QUESTION_TYPE = "UnsupportedQuestionType"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class BandId(str, Enum):
    CRITICAL = "critical"
    NEEDS_IMPROVEMENT = "needs-improvement"
    DEVELOPING = "developing"
    EFFECTIVE = "effective"
    HIGHLY_EFFECTIVE = "highly-effective"
