from .user import User
from .faculty import Faculty
from .department import Department
from .major import Major
from .student import Student
from .campaign import Campaign
