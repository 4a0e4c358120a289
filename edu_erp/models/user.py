from werkzeug.security import generate_password_hash, check_password_hash

from edu_erp.extensions import db
from edu_erp.models.base import TimestampMixin

ROLES = (
    "admin",
    "system_admin",
    "student",
    "lecturer",
    "faculty_coordinator",
    "major_coordinator",
    "finance_staff",
    "hr_staff",
    "marketing_staff",
    "employee",
)


class User(TimestampMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.Enum(*ROLES, name="user_role"), nullable=False, default="student")
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    reset_token = db.Column(db.String(255), nullable=True)
    reset_token_expiry = db.Column(db.DateTime, nullable=True)
    last_login = db.Column(db.DateTime, nullable=True)

    student = db.relationship("Student", back_populates="user", uselist=False)

    def set_password(self, raw_password):
        self.password = generate_password_hash(raw_password)

    def check_password(self, raw_password):
        return check_password_hash(self.password, raw_password)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "name": self.full_name,
            "role": self.role,
            "isActive": self.is_active,
            "lastLogin": self.last_login.isoformat() if self.last_login else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.email}>"
