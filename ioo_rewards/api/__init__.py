from ioo_rewards.api.routes import router

__all__ = ["router"]
