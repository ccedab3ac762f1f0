from answer_quality.application.workflows.answer_runner import AnswerRunner, jitter_temperature, select_best

__all__ = ["AnswerRunner", "jitter_temperature", "select_best"]
