from wortschatz.db.models import Base, FavoriteCategory, UserSession, UserWord  # noqa: F401
