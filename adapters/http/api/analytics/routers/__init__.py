from .ai_router import router as ai_router

__all__ = ["ai_router"]
