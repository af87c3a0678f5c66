from azure.cosmos.aio import ContainerProxy
from fastapi import Depends, Request

from crm_panel.db import Backend, ContainerType
from crm_panel.storage import ImageStore


def get_backend(request: Request) -> Backend:
    """
    The process-wide backend handle, created on first use from the
    settings the app was built with.
    """
    backend = getattr(request.app.state, "backend", None)
    if backend is None:
        backend = Backend(request.app.state.settings)
        request.app.state.backend = backend
    return backend


def get_products_container(backend: Backend = Depends(get_backend)) -> ContainerProxy:
    return backend.get_container(ContainerType.PRODUCTS)


def get_inventory_container(backend: Backend = Depends(get_backend)) -> ContainerProxy:
    return backend.get_container(ContainerType.INVENTORY)


def get_users_container(backend: Backend = Depends(get_backend)) -> ContainerProxy:
    return backend.get_container(ContainerType.USERS)


def get_image_store(backend: Backend = Depends(get_backend)) -> ImageStore:
    return ImageStore(backend.get_image_container())
