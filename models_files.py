# models_files.py
from datetime import datetime
from extensions import db

FILE_STATUSES = ("uploading", "processing", "completed", "error")


def _iso(dt):
    return dt.isoformat() if dt else None


class UploadedFile(db.Model):
    __tablename__ = "uploaded_files"
    id               = db.Column(db.Integer, primary_key=True)
    created_at       = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at       = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    filename         = db.Column(db.String(300), nullable=False)   # stored name on disk
    original_name    = db.Column(db.String(300), nullable=False)
    mimetype         = db.Column(db.String(120), nullable=False)
    size             = db.Column(db.Integer, nullable=False, default=0)
    path             = db.Column(db.String(500), nullable=False)   # absolute path
    uploaded_by      = db.Column(db.Integer, db.ForeignKey("auth_user.id"), nullable=False, index=True)

    status           = db.Column(db.String(16), default="uploading", nullable=False, index=True)
    processing_error = db.Column(db.Text)
    processed_data   = db.Column(db.JSON)   # headers|rowCount|sheets|dataPreview|metadata

    tags             = db.Column(db.JSON, default=list)
    description      = db.Column(db.Text)
    is_public        = db.Column(db.Boolean, default=False, nullable=False, index=True)
    download_count   = db.Column(db.Integer, default=0, nullable=False)
    last_accessed    = db.Column(db.DateTime)

    @property
    def url(self):
        return f"/uploads/{self.filename}"

    def touch(self):
        self.last_accessed = datetime.utcnow()

    def increment_download_count(self):
        self.download_count = (self.download_count or 0) + 1
        self.last_accessed = datetime.utcnow()

    def to_dict(self):
        return {
            "id": self.id,
            "filename": self.filename,
            "originalName": self.original_name,
            "mimetype": self.mimetype,
            "size": self.size,
            "url": self.url,
            "uploadedBy": self.uploaded_by,
            "status": self.status,
            "processingError": self.processing_error,
            "processedData": self.processed_data,
            "tags": self.tags or [],
            "description": self.description,
            "isPublic": self.is_public,
            "downloadCount": self.download_count,
            "lastAccessed": _iso(self.last_accessed),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
