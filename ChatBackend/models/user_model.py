from sqlalchemy import Column, DateTime, Integer, String, func

from ChatBackend.database import Base


# Marketplace accounts; chat only reads these rows
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False)  # lower-cased + trimmed on write
    password = Column(String(255), nullable=False)  # bcrypt hash
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email!r})>"
