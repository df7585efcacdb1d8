# ssbl/utils/transaction.py
from contextlib import contextmanager
from sqlalchemy.exc import SQLAlchemyError
from ssbl import db
from ssbl.services.results import PersistenceError

@contextmanager
def atomic():
    """
    單一交易邊界: 成功則 commit，任何例外都完整 rollback。
    ValidationFailed 原樣往外拋 (由服務層轉成 Error)，資料庫錯誤包裝成 PersistenceError。
    """
    session = db.session
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        print(f"❌ [DB] 交易失敗，已回滾: {e}")
        raise PersistenceError(str(e)) from e
    except Exception:
        session.rollback()
        raise

def lock(query):
    """
    以 SELECT ... FOR UPDATE 重新讀取，並覆蓋 session 中已載入的舊值。
    SQLite 會忽略 FOR UPDATE (寫入本身已序列化)。
    """
    return query.with_for_update().populate_existing()
