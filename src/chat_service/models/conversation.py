from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from .base import Base, CreatedAtMixin, SortableIDMixin, UTCDateTime


class Conversation(SortableIDMixin, CreatedAtMixin, Base):
    __tablename__ = "conversations"

    title = Column(String(255), nullable=False)
    # Set only when an assistant reply is persisted
    last_message_at = Column(UTCDateTime(), nullable=True)

    # Relationships
    messages = relationship(
        "Message",
        back_populates="conversation",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Message.created_at",
    )

    def __repr__(self) -> str:
        return f"<Conversation {self.id} {self.title!r}>"
