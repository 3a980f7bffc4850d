# models_charts.py
from datetime import datetime
from sqlalchemy import text
from extensions import db

SHARE_PERMISSIONS = ("view", "edit")


def _iso(dt):
    return dt.isoformat() if dt else None


class Chart(db.Model):
    __tablename__ = "charts"
    id             = db.Column(db.Integer, primary_key=True)
    created_at     = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at     = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    title          = db.Column(db.String(100), nullable=False)
    description    = db.Column(db.String(500))
    chart_type     = db.Column(db.String(16), nullable=False, index=True)
    chart_config   = db.Column(db.JSON, nullable=False)     # labels + datasets, see chart_config.py
    source_file_id = db.Column(db.Integer, db.ForeignKey("uploaded_files.id"), nullable=False, index=True)
    created_by     = db.Column(db.Integer, db.ForeignKey("auth_user.id"), nullable=False, index=True)
    is_auto        = db.Column(db.Boolean, default=False, nullable=False)

    is_public      = db.Column(db.Boolean, default=False, nullable=False, index=True)
    tags           = db.Column(db.JSON, default=list)
    view_count     = db.Column(db.Integer, default=0, nullable=False)
    last_viewed    = db.Column(db.DateTime)

    shares = db.relationship("ChartShare", backref="chart", cascade="all, delete-orphan",
                             order_by="ChartShare.shared_at")

    # one automatic chart per (file, owner, type); manual charts are unconstrained
    __table_args__ = (
        db.Index("uq_chart_auto_type", "source_file_id", "created_by", "chart_type", unique=True,
                 sqlite_where=text("is_auto = 1"), postgresql_where=text("is_auto")),
    )

    def increment_view_count(self):
        self.view_count = (self.view_count or 0) + 1
        self.last_viewed = datetime.utcnow()

    def _share_for(self, user_id):
        return next((s for s in self.shares if s.user_id == user_id), None)

    def share_with(self, user_id: int, permission: str = "view"):
        share = self._share_for(user_id)
        if share:
            share.permission = permission
            share.shared_at = datetime.utcnow()
        else:
            share = ChartShare(user_id=user_id, permission=permission, shared_at=datetime.utcnow())
            self.shares.append(share)
        return share

    def unshare_with(self, user_id: int) -> bool:
        share = self._share_for(user_id)
        if not share:
            return False
        self.shares.remove(share)
        return True

    def permission_for(self, user_id):
        """owner | edit | view | None"""
        if self.created_by == user_id:
            return "owner"
        share = self._share_for(user_id)
        if share:
            return share.permission
        return "view" if self.is_public else None

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "chartType": self.chart_type,
            "chartConfig": self.chart_config,
            "sourceFile": self.source_file_id,
            "createdBy": self.created_by,
            "isAuto": self.is_auto,
            "isPublic": self.is_public,
            "tags": self.tags or [],
            "viewCount": self.view_count,
            "lastViewed": _iso(self.last_viewed),
            "sharedWith": [s.to_dict() for s in self.shares],
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class ChartShare(db.Model):
    __tablename__ = "chart_shares"
    id         = db.Column(db.Integer, primary_key=True)
    chart_id   = db.Column(db.Integer, db.ForeignKey("charts.id"), nullable=False, index=True)
    user_id    = db.Column(db.Integer, db.ForeignKey("auth_user.id"), nullable=False, index=True)
    permission = db.Column(db.String(8), default="view", nullable=False)  # view|edit
    shared_at  = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (db.UniqueConstraint("chart_id", "user_id", name="uq_share_chart_user"),)

    def to_dict(self):
        return {"user": self.user_id, "permission": self.permission, "sharedAt": _iso(self.shared_at)}
