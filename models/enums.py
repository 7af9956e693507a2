from enum import Enum


class Role(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"
    DISABLED = "DISABLED"


class Language(str, Enum):
    CHINESE = "CN"
    JAPANESE = "JA"
    KOREAN = "KR"
    MANDARIN = "ZH"
    GERMAN = "DE"


class Activity(str, Enum):
    FLASHCARDS = "FLASHCARDS"
    TEXTBOOK = "TEXTBOOK"
    READING = "READING"
    LISTENING = "LISTENING"
    TRANSLATION = "TRANSLATION"
    GRAMMAR = "GRAMMAR"
    OTHER = "OTHER"
