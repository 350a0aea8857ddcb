from typing import List

from fastapi import APIRouter, Depends, status

from app.core.exceptions import NotFoundError
from app.dependencies import get_storage
from app.schemas.team import Team
from app.services.storage import StorageSynchronizer

router = APIRouter()


@router.get("", response_model=List[Team])
def list_teams(storage: StorageSynchronizer = Depends(get_storage)):
    return storage.get_teams()


@router.get("/{team_id}", response_model=Team)
def get_team(team_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    team = storage.get_team(team_id)
    if team is None:
        raise NotFoundError("team", team_id)
    return team


@router.post("", response_model=Team, status_code=status.HTTP_201_CREATED)
def create_team(team: Team, storage: StorageSynchronizer = Depends(get_storage)):
    return storage.save_team(team)


@router.put("/{team_id}", response_model=Team)
def update_team(team_id: str, team: Team, storage: StorageSynchronizer = Depends(get_storage)):
    return storage.save_team(team.model_copy(update={"id": team_id}))


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_team(team_id: str, storage: StorageSynchronizer = Depends(get_storage)):
    storage.delete_team(team_id)
