from sqlalchemy import Boolean, Column, String, DateTime, event
from sqlalchemy.orm import declared_attr, declarative_base
from datetime import datetime
import uuid


def generate_uuid() -> str:
    return str(uuid.uuid4())

class BaseModelMixin:
    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower() + 's'
    id = Column(String(36), primary_key=True, default=generate_uuid)
    state = Column(Boolean, default=True, nullable=False)
    status = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @classmethod
    def __declare_last__(cls):
        @event.listens_for(cls, 'before_insert')
        def receive_before_insert(mapper, connection, instance):
            if instance.id is None:
                instance.id = generate_uuid()


Base = declarative_base(cls=BaseModelMixin)
