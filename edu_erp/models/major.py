from edu_erp.extensions import db
from edu_erp.models.base import TimestampMixin


class Major(TimestampMixin, db.Model):
    __tablename__ = "majors"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=False)

    department = db.relationship("Department", back_populates="majors")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "departmentId": self.department_id,
            "departmentName": self.department.name if self.department else None,
        }

    def __repr__(self):
        return f"<Major {self.name}>"
