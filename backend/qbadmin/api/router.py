from __future__ import annotations

from fastapi import APIRouter

from qbadmin.api.routes import auth, banks, essays, files, images, providers, subjects

router = APIRouter()

for module in (auth, files, banks, subjects, essays, images, providers):
    router.include_router(module.router)
