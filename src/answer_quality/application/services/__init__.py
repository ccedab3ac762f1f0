from answer_quality.application.services.answer_generator import AnswerGenerator
from answer_quality.application.services.scoring_engine import ScoringEngine, baseline_accuracy, weighted_overall
from answer_quality.application.services.validation_engine import CriteriaCheck, ValidationEngine

__all__ = [
    "AnswerGenerator",
    "ScoringEngine",
    "baseline_accuracy",
    "weighted_overall",
    "CriteriaCheck",
    "ValidationEngine",
]
