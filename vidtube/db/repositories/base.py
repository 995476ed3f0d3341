from typing import Any, Generic, Optional, Type, TypeVar
from sqlmodel import SQLModel, Session, select, func

# Type générique pour le modèle (User, Video, WatchEntry...)
ModelT = TypeVar("ModelT", bound=SQLModel)

class BaseRepository(Generic[ModelT]):
    """
    Persistance générique partagée par tous les repositories.

    👉 Aucune logique métier.
    👉 Chaque écriture est validée immédiatement (un commit par appel) ;
       en cas d'erreur SQL le service appelle rollback() avant de lever son erreur métier.
    👉 Les repositories concrets définissent `model = MaClasseSQLModel`.
    """

    model: Type[ModelT]

    def __init__(self, session: Session):
        self.session = session

    def _persist(self, entity: ModelT) -> ModelT:
        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return entity

    # ---------- READ ----------

    def get(self, id_: Any) -> Optional[ModelT]:
        return self.session.get(self.model, id_)

    def count(self) -> int:
        return self.session.exec(select(func.count(self.model.id))).one()

    # ---------- WRITE ----------

    def create(self, **fields) -> ModelT:
        return self._persist(self.model(**fields))

    def update(self, entity: ModelT, **changes) -> ModelT:
        for key, value in changes.items():
            setattr(entity, key, value)
        return self._persist(entity)

    def delete(self, entity: ModelT) -> None:
        self.session.delete(entity)
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
