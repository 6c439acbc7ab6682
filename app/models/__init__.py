# Alembic will detect models here
from .base import RecordStatus
from .user import User
from .taxonomy import (
    VehicleMake,
    VehicleModel,
    VehicleVariant,
    VehicleBodyType,
    VehicleAxleConfig,
    VehicleFuelType,
    VehicleEmissionNorm,
    VehicleTransmission,
    VehicleFeatureTag,
)
from .vehicle import Vehicle, VehicleFeatureMap, VehicleCondition, VehicleStatus
from .service_center import (
    ServiceCenter,
    ServiceCenterStatus,
    ServiceCenterType,
    ServiceType,
    VehicleBrand,
)
