# Domain Package
from .models import Card, CardParse, Grade, InvalidGradeError, ValidationIssue
from .ports import CardStore, Clock, KeyValueStore, Shuffler, UnknownCardError

__all__ = [
    "Card",
    "CardParse",
    "Grade",
    "InvalidGradeError",
    "ValidationIssue",
    "CardStore",
    "Clock",
    "KeyValueStore",
    "Shuffler",
    "UnknownCardError",
]
