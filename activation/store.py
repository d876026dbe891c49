# activation/store.py
"""Device record persistence.

Both stores expose get/put/delete/list keyed by an already normalized
device code. The JSON file store rewrites the whole mapping on every
mutation through a temp file + os.replace, so a crash mid-write leaves
the previous file in place.
"""
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from activation.database import make_session_factory
from activation.errors import StoreWriteError
from activation.models import Base, Device, DeviceRecord, record_from_payload

logger = logging.getLogger(__name__)


class RecordStore:
    def get(self, code: str) -> Optional[DeviceRecord]:
        raise NotImplementedError

    def put(self, code: str, record: DeviceRecord) -> None:
        raise NotImplementedError

    def delete(self, code: str) -> None:
        raise NotImplementedError

    def list(self) -> List[Tuple[str, DeviceRecord]]:
        raise NotImplementedError

    def seed(self, records: Dict[str, DeviceRecord]) -> bool:
        """Write `records` only if the store does not exist yet. Returns True if seeded."""
        raise NotImplementedError


class JsonFileRecordStore(RecordStore):
    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.RLock()

    def _load(self) -> Dict[str, DeviceRecord]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read {self.path}, treating store as empty: {e}")
            return {}
        if not isinstance(raw, dict):
            logger.warning(f"{self.path} does not hold a JSON object, treating store as empty")
            return {}
        out = {}
        for code, data in raw.items():
            if isinstance(data, dict):
                out[code] = record_from_payload(data)
        return out

    def _persist(self, mapping: Dict[str, DeviceRecord]) -> None:
        payload = {code: rec.model_dump() for code, rec in mapping.items()}
        directory = self.path.parent
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error(f"Failed to persist device store to {self.path}: {e}")
            raise StoreWriteError(str(e)) from e

    def get(self, code: str) -> Optional[DeviceRecord]:
        with self._lock:
            return self._load().get(code)

    def put(self, code: str, record: DeviceRecord) -> None:
        with self._lock:
            mapping = self._load()
            mapping[code] = record
            self._persist(mapping)
        logger.info(f"Saved device {code}")

    def delete(self, code: str) -> None:
        with self._lock:
            mapping = self._load()
            if mapping.pop(code, None) is None:
                return
            self._persist(mapping)
        logger.info(f"Deleted device {code}")

    def list(self) -> List[Tuple[str, DeviceRecord]]:
        with self._lock:
            return sorted(self._load().items())

    def seed(self, records: Dict[str, DeviceRecord]) -> bool:
        with self._lock:
            if self.path.exists():
                return False
            self._persist(dict(records))
        logger.info(f"Seeded {self.path} with {len(records)} record(s)")
        return True


class SqlRecordStore(RecordStore):
    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = make_session_factory(engine)
        self._lock = threading.RLock()
        # create table if not present
        Base.metadata.create_all(bind=engine)

    @staticmethod
    def _to_record(row: Device) -> DeviceRecord:
        return DeviceRecord(status=row.status, plan=row.plan, expiry=row.expiry, notes=row.notes)

    def get(self, code: str) -> Optional[DeviceRecord]:
        with self._lock:
            try:
                with self.SessionLocal() as db:
                    row = db.get(Device, code)
                    return self._to_record(row) if row else None
            except SQLAlchemyError as e:
                logger.warning(f"Device lookup failed, treating as absent: {e}")
                return None

    def put(self, code: str, record: DeviceRecord) -> None:
        with self._lock:
            try:
                with self.SessionLocal() as db:
                    row = db.get(Device, code)
                    if row is None:
                        row = Device(code=code)
                    row.status = record.status
                    row.plan = record.plan
                    row.expiry = record.expiry
                    row.notes = record.notes
                    db.add(row)
                    db.commit()
            except SQLAlchemyError as e:
                logger.error(f"Failed to save device {code}: {e}")
                raise StoreWriteError(str(e)) from e
        logger.info(f"Saved device {code}")

    def delete(self, code: str) -> None:
        with self._lock:
            try:
                with self.SessionLocal() as db:
                    row = db.get(Device, code)
                    if row is None:
                        return
                    db.delete(row)
                    db.commit()
            except SQLAlchemyError as e:
                logger.error(f"Failed to delete device {code}: {e}")
                raise StoreWriteError(str(e)) from e
        logger.info(f"Deleted device {code}")

    def list(self) -> List[Tuple[str, DeviceRecord]]:
        with self._lock:
            try:
                with self.SessionLocal() as db:
                    rows = db.scalars(select(Device).order_by(Device.code)).all()
                    return [(row.code, self._to_record(row)) for row in rows]
            except SQLAlchemyError as e:
                logger.warning(f"Device listing failed, treating store as empty: {e}")
                return []

    def seed(self, records: Dict[str, DeviceRecord]) -> bool:
        with self._lock:
            with self.SessionLocal() as db:
                if db.scalars(select(Device.code).limit(1)).first() is not None:
                    return False
                for code, rec in records.items():
                    db.add(Device(code=code, status=rec.status, plan=rec.plan, expiry=rec.expiry, notes=rec.notes))
                db.commit()
        logger.info(f"Seeded devices table with {len(records)} record(s)")
        return True
