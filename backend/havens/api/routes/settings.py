"""Global pricing and branding settings routes."""

import logging

from fastapi import APIRouter, Request

from havens.core.cache import CacheKeys, cache, make_signature
from havens.core.rate_limit import limiter
from havens.core.rbac import RequireSuperAdmin
from havens.models.settings import DeliveryTier
from havens.schemas.settings import GlobalSettingsResponse, GlobalSettingsUpdate
from havens.services.store import Store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=GlobalSettingsResponse)
def get_settings(store: Store):
    def load():
        record = store.get_global_settings()
        # Persist a freshly seeded record before it is cached
        store.commit()
        return GlobalSettingsResponse.model_validate(record).model_dump(mode="json")

    return cache.get_or_load(CacheKeys.SETTINGS, make_signature("global"), load)


@router.put("/", response_model=GlobalSettingsResponse)
@limiter.limit("30/minute")
def update_settings(request: Request, body: GlobalSettingsUpdate, store: Store, current_user: RequireSuperAdmin):
    record = store.get_global_settings()
    changes = body.model_dump(exclude_unset=True, exclude={"delivery_tiers"})
    for field, value in changes.items():
        if value is not None:
            setattr(record, field, value)
    if body.delivery_tiers is not None:
        record.delivery_tiers = [
            DeliveryTier(up_to_km=tier.up_to_km, charge=tier.charge)
            for tier in sorted(body.delivery_tiers, key=lambda t: t.up_to_km)
        ]
    store.save_global_settings(record)
    store.commit(CacheKeys.SETTINGS)
    logger.info(f"Global settings updated by {current_user.email}: {sorted(body.model_fields_set)}")
    return record
