from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from awakenfetch.container import Container
from awakenfetch.infra.blockchain.registry import ChainAdapterRegistry


@inject
def get_registry(
    registry: ChainAdapterRegistry = Depends(Provide[Container.adapter_registry]),
) -> ChainAdapterRegistry:
    return registry
