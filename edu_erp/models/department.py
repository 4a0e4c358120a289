from edu_erp.extensions import db
from edu_erp.models.base import TimestampMixin


class Department(TimestampMixin, db.Model):
    __tablename__ = "departments"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    faculty_id = db.Column(db.Integer, db.ForeignKey("faculties.id"), nullable=False)

    budget = db.Column(db.Numeric(12, 2), default=0)
    cost_center = db.Column(db.String(20))
    location = db.Column(db.String(100))
    phone = db.Column(db.String(30))
    email = db.Column(db.String(255))
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    faculty = db.relationship("Faculty", back_populates="departments")
    majors = db.relationship(
        "Major",
        back_populates="department",
        order_by="Major.name"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "facultyId": self.faculty_id,
            "facultyName": self.faculty.name if self.faculty else None,
            "budget": float(self.budget) if self.budget is not None else None,
            "costCenter": self.cost_center,
            "location": self.location,
            "phone": self.phone,
            "email": self.email,
            "isActive": self.is_active,
        }

    def __repr__(self):
        return f"<Department {self.name}>"
