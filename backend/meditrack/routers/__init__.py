#router package initializer
from .patients import router as patients_router

#defines what is publicly exposed when someone imports this package
__all__ = ["patients_router"]
