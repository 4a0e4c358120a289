from edu_erp.extensions import db
from edu_erp.models.base import TimestampMixin

CAMPAIGN_STATUSES = ("draft", "active", "paused", "completed")


class Campaign(TimestampMixin, db.Model):
    __tablename__ = "campaigns"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), unique=True, nullable=False)
    description = db.Column(db.Text)
    channel = db.Column(db.String(50))
    budget = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    spent = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    leads = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default="draft")
    start_date = db.Column(db.Date)
    end_date = db.Column(db.Date)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    creator = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "channel": self.channel,
            "budget": float(self.budget),
            "spent": float(self.spent),
            "leads": self.leads,
            "status": self.status,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "createdBy": self.created_by,
        }

    def __repr__(self):
        return f"<Campaign {self.name}>"
