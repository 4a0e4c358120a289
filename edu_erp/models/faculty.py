from edu_erp.extensions import db
from edu_erp.models.base import TimestampMixin


class Faculty(TimestampMixin, db.Model):
    __tablename__ = "faculties"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), unique=True, nullable=False)
    code = db.Column(db.String(20), unique=True, nullable=True)
    description = db.Column(db.Text)

    departments = db.relationship(
        "Department",
        back_populates="faculty",
        order_by="Department.name"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "description": self.description,
        }

    def __repr__(self):
        return f"<Faculty {self.name}>"
