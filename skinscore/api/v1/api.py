from fastapi import APIRouter
from skinscore.api.v1 import allowance, chat, early_bird, payments, profile, scans, webhooks

api_router = APIRouter()

# Include all v1 routers
api_router.include_router(webhooks.router)
api_router.include_router(allowance.router)
api_router.include_router(early_bird.router)
api_router.include_router(payments.router)
api_router.include_router(profile.router)
api_router.include_router(scans.router)
api_router.include_router(chat.router)
