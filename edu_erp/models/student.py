from edu_erp.extensions import db
from edu_erp.models.base import TimestampMixin

STUDENT_STATUSES = ("active", "inactive", "graduated", "suspended", "withdrawn")


class Student(TimestampMixin, db.Model):
    __tablename__ = "students"

    id = db.Column(db.Integer, primary_key=True)
    matricule = db.Column(db.String(20), unique=True, nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(30))
    gender = db.Column(db.String(10))
    date_of_birth = db.Column(db.Date)
    region_of_origin = db.Column(db.String(50))
    place_of_origin = db.Column(db.String(100))
    address = db.Column(db.JSON)
    emergency_contact = db.Column(db.JSON)

    faculty_id = db.Column(db.Integer, db.ForeignKey("faculties.id"), nullable=False)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=False)
    major_id = db.Column(db.Integer, db.ForeignKey("majors.id"), nullable=False)

    semester = db.Column(db.Integer, nullable=False, default=1)
    # Year of study
    level = db.Column(db.Integer, nullable=False, default=1)
    degree_level = db.Column(db.String(20), nullable=False, default="undergraduate")
    student_type = db.Column(db.String(20), nullable=False, default="regular")
    enrollment_date = db.Column(db.Date)
    registration_year = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default="active")
    gpa = db.Column(db.Numeric(3, 2), default=0)
    total_credits = db.Column(db.Integer, default=0)

    user = db.relationship("User", back_populates="student")
    faculty = db.relationship("Faculty")
    department = db.relationship("Department")
    major = db.relationship("Major")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def to_dict(self):
        return {
            "id": self.id,
            "matricule": self.matricule,
            "userId": self.user_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "gender": self.gender,
            "dateOfBirth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "regionOfOrigin": self.region_of_origin,
            "placeOfOrigin": self.place_of_origin,
            "address": self.address,
            "emergencyContact": self.emergency_contact,
            "facultyId": self.faculty_id,
            "facultyName": self.faculty.name if self.faculty else None,
            "departmentId": self.department_id,
            "departmentName": self.department.name if self.department else None,
            "majorId": self.major_id,
            "majorName": self.major.name if self.major else None,
            "semester": self.semester,
            "level": self.level,
            "degreeLevel": self.degree_level,
            "studentType": self.student_type,
            "enrollmentDate": self.enrollment_date.isoformat() if self.enrollment_date else None,
            "registrationYear": self.registration_year,
            "status": self.status,
            "gpa": float(self.gpa) if self.gpa is not None else None,
            "totalCredits": self.total_credits,
        }

    def __repr__(self):
        return f"<Student {self.matricule}>"
