# models/schemas/base.py
from pydantic import BaseModel, ConfigDict
from datetime import datetime


class TimestampModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    created_at: datetime
    updated_at: datetime


class MetadataModel(BaseModel):
    @classmethod
    def from_orm_obj(cls, obj, **extra):
        data = {
            key: getattr(obj, key)
            for key in cls.model_fields.keys()
            if key != "metadata" and hasattr(obj, key)
        }
        # Special handling for metadata
        data["metadata"] = dict(obj.metadata_ or {})
        data.update(extra)
        return cls(**data)

    def to_orm_dict(self, **kwargs):    # kwargs go to model_dump
        data = self.model_dump(**kwargs)
        # Convert metadata back to metadata_
        if "metadata" in data:
            data["metadata_"] = data.pop("metadata")
        return data
