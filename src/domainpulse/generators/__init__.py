from .llm_client import TextModel, GeminiModel, create_model
from .name_generator import NameGenerator
from .categorizer import Categorizer, CategoryGroup

__all__ = ['TextModel', 'GeminiModel', 'create_model', 'NameGenerator', 'Categorizer', 'CategoryGroup']
