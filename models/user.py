from models.base_model import Base, BaseModel
from sqlalchemy import Column, String
from sqlalchemy.orm import relationship


class User(BaseModel, Base):
    __tablename__ = "users"
    # Canonical lowercase; normalised by UserCreateSchema before it gets here
    email = Column(String(254), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=True)
    avatar = Column(String(2048), nullable=True)
    # Absent for accounts created through Google sign-in
    password_hash = Column(String(255), nullable=True)
    google_id = Column(String(255), nullable=True, unique=True)

    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def __repr__(self):
        return f"<User email={self.email}>"
