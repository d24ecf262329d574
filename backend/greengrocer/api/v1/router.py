from fastapi import APIRouter

from greengrocer.api.v1 import auth, import_routes, products, users

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(products.router, prefix="/products", tags=["products"])
api_router.include_router(import_routes.router, prefix="/import", tags=["import"])
