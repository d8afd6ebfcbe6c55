from .session import SessionMiddleware

__all__ = [
	"SessionMiddleware",
]
