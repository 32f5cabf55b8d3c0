"""
Сериализация записи по барберу

Проверка пересечений и запись в БД должны идти под одной блокировкой,
иначе две параллельные записи на одно время обе пройдут проверку.
Внутри процесса держим threading.Lock на барбера, в БД - строку барбера
через SELECT ... FOR UPDATE (в SQLite это no-op, там хватает локальной блокировки).
"""
import threading
import weakref
from contextlib import contextmanager

from sqlalchemy.orm import Session

from ..models import Barber

_registry_lock = threading.Lock()
# Запись живёт, пока блокировку кто-то держит или ждёт
_barber_locks = weakref.WeakValueDictionary()


def _local_lock(barber_id: int) -> threading.Lock:
    with _registry_lock:
        lock = _barber_locks.get(barber_id)
        if lock is None:
            lock = threading.Lock()
            _barber_locks[barber_id] = lock
        return lock


@contextmanager
def barber_write_lock(db: Session, barber_id: int):
    """
    Блокировка записи для барбера до конца транзакции.
    При ошибке транзакция откатывается, исключение пробрасывается дальше.
    """
    lock = _local_lock(barber_id)
    with lock:
        try:
            db.query(Barber).filter(Barber.id == barber_id).with_for_update().first()
            yield
        except Exception:
            db.rollback()
            raise
