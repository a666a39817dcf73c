from .books import BooksRepository
from .requests import RequestsRepository
from .reviews import ReviewsRepository, SavedBooksRepository
from .users import UsersRepository
from . import models

__all__ = [
    "BooksRepository",
    "RequestsRepository",
    "ReviewsRepository",
    "SavedBooksRepository",
    "UsersRepository",
    "models",
]
