"""FastAPI backend powering the Card Quest UI."""
from __future__ import annotations

import asyncio
import logging
import uuid
from collections import defaultdict
from typing import Any, Callable, Dict, List, Literal, Optional, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from card_quest import CardGenerator, GameSession
from card_quest.enums import CardEffect, CardSource, Outcome, Rarity
from card_quest.models import BattleState
from card_quest.ports import Notification, NotificationLog
from card_quest.scheduler import AsyncioScheduler, Scheduler
from card_quest.session import BattleRecord

logger = logging.getLogger(__name__)

app = FastAPI(title="Card Quest API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class GameManager:
    """Keeps track of running games and websocket subscribers."""

    def __init__(self, scheduler_factory: Optional[Callable[[], Scheduler]] = None) -> None:
        self.active_games: Dict[str, GameSession] = {}
        self.connections: Dict[str, List[WebSocket]] = defaultdict(list)
        self.scheduler_factory = scheduler_factory or AsyncioScheduler
        self.card_generator = CardGenerator()
        self._pending: Set[asyncio.Task] = set()

    def create_game(self, seed: Optional[int] = None) -> str:
        game_id = str(uuid.uuid4())
        game = GameSession(seed=seed, scheduler=self.scheduler_factory())
        game.battle.add_listener(lambda state: self._on_state(game_id, state))
        if isinstance(game.notifier, NotificationLog):
            game.notifier.subscribe(lambda note: self._on_notification(game_id, note))
        self.active_games[game_id] = game
        logger.info("Created game %s", game_id)
        return game_id

    def get_game(self, game_id: str) -> GameSession:
        game = self.active_games.get(game_id)
        if not game:
            raise HTTPException(status_code=404, detail="Game not found")
        return game

    def serialize(self, game_id: str) -> Dict[str, Any]:
        game = self.get_game(game_id)
        state = game.to_public_dict()
        state["game_id"] = game_id
        if isinstance(game.notifier, NotificationLog):
            state["notifications"] = [note.to_dict() for note in game.notifier.entries[-10:]]
        return state

    # ------------------------------------------------------------------
    # Push updates
    # ------------------------------------------------------------------

    def _on_state(self, game_id: str, state: BattleState) -> None:
        self._push(game_id, {"type": "battle_state", "battle": state.to_dict()})

    def _on_notification(self, game_id: str, note: Notification) -> None:
        self._push(game_id, {"type": "notification", "notification": note.to_dict()})

    def _push(self, game_id: str, payload: Dict[str, Any]) -> None:
        if not self.connections.get(game_id):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; dropping push for game %s", game_id)
            return
        task = loop.create_task(self.broadcast(game_id, payload))
        self._pending.add(task)
        task.add_done_callback(self._push_done)

    def _push_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Websocket push failed", exc_info=task.exception())

    async def flush(self) -> None:
        """Wait for every push queued so far."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def broadcast(self, game_id: str, payload: Dict[str, Any]) -> None:
        recipients = self.connections.get(game_id, [])
        dead: List[WebSocket] = []
        for ws in recipients:
            try:
                await ws.send_json(payload)
            except (WebSocketDisconnect, RuntimeError):
                dead.append(ws)
        for ws in dead:
            recipients.remove(ws)

    async def action_result(self, game_id: str, action: str, success: bool, **extra: Any) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": success, **extra}
        await self.flush()
        await self.broadcast(
            game_id,
            {
                "type": "action_result",
                "action": action,
                "result": result,
                "game_state": self.serialize(game_id),
            },
        )
        result["game_state"] = self.serialize(game_id)
        return result


manager = GameManager()


class CreateGameRequest(BaseModel):
    player_name: Optional[str] = None
    seed: Optional[int] = None


class StartBattleRequest(BaseModel):
    level: int = Field(default=1, ge=1)


class PlayCardRequest(BaseModel):
    card_idx: int


class BattleRecordRequest(BaseModel):
    enemy_level: int = Field(ge=1)
    outcome: Literal["win", "lose"]
    player_cards_used: List[str] = Field(default_factory=list)
    enemy_cards_used: List[str] = Field(default_factory=list)
    turns: int = Field(default=0, ge=0)
    reward_card: Optional[str] = None


@app.post("/api/game/create")
async def create_game(request: CreateGameRequest) -> Dict[str, Any]:
    game_id = manager.create_game(seed=request.seed)
    return {"game_id": game_id, "game_state": manager.serialize(game_id)}


@app.get("/api/game/{game_id}")
async def get_game(game_id: str) -> Dict[str, Any]:
    return manager.serialize(game_id)


@app.post("/api/game/{game_id}/battle/start")
async def start_battle(game_id: str, request: StartBattleRequest) -> Dict[str, Any]:
    game = manager.get_game(game_id)
    game.start_battle(request.level)
    return await manager.action_result(game_id, "start_battle", True, level=request.level)


@app.post("/api/game/{game_id}/battle/play")
async def play_card(game_id: str, request: PlayCardRequest) -> Dict[str, Any]:
    game = manager.get_game(game_id)
    success = game.play_card(request.card_idx)
    return await manager.action_result(game_id, "play_card", success, card_idx=request.card_idx)


@app.post("/api/game/{game_id}/battle/end-turn")
async def end_turn(game_id: str) -> Dict[str, Any]:
    game = manager.get_game(game_id)
    success = game.end_turn()
    return await manager.action_result(game_id, "end_turn", success)


@app.post("/api/game/{game_id}/battle/reset")
async def reset_battle(game_id: str) -> Dict[str, Any]:
    game = manager.get_game(game_id)
    game.start_new_battle()
    return await manager.action_result(game_id, "reset_battle", True)


@app.post("/api/game/{game_id}/packs/open")
async def open_pack(game_id: str) -> Dict[str, Any]:
    game = manager.get_game(game_id)
    card = game.open_pack()
    return await manager.action_result(game_id, "open_pack", True, card=card.to_dict())


@app.post("/api/game/{game_id}/deck/{card_idx}")
async def add_to_deck(game_id: str, card_idx: int) -> Dict[str, Any]:
    game = manager.get_game(game_id)
    success = game.collection.add_to_deck(card_idx)
    return await manager.action_result(game_id, "add_to_deck", success, card_idx=card_idx)


@app.delete("/api/game/{game_id}/deck/{card_idx}")
async def remove_from_deck(game_id: str, card_idx: int) -> Dict[str, Any]:
    game = manager.get_game(game_id)
    removed = game.collection.remove_from_deck(card_idx)
    return await manager.action_result(game_id, "remove_from_deck", removed is not None, card_idx=card_idx)


@app.get("/api/game/{game_id}/collection")
async def show_collection(game_id: str) -> Dict[str, Any]:
    game = manager.get_game(game_id)
    game.show_collection()
    return {"collection": game.collection.to_dict(), "view": game.navigator.view.value}


@app.get("/api/game/{game_id}/battles")
async def get_battles(game_id: str) -> Dict[str, Any]:
    game = manager.get_game(game_id)
    return {"battles": game.history.to_list(), "wins": game.history.wins()}


@app.post("/api/game/{game_id}/battles")
async def record_battle(game_id: str, request: BattleRecordRequest) -> Dict[str, Any]:
    game = manager.get_game(game_id)
    record = BattleRecord(
        enemy_level=request.enemy_level,
        outcome=Outcome(request.outcome),
        player_cards_used=list(request.player_cards_used),
        enemy_cards_used=list(request.enemy_cards_used),
        turns=request.turns,
        reward_card=request.reward_card,
    )
    game.history.append(record)
    return {"success": True, "battle": record.to_dict()}


@app.get("/api/cards")
async def get_cards(count: int = 5, level: int = 1, source: str = CardSource.PACK.value) -> Dict[str, Any]:
    try:
        card_source = CardSource(source)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown card source: {source}")
    count = max(0, min(count, 50))
    cards = manager.card_generator.generate_many(count, card_source, max(1, level))
    return {
        "cards": [card.to_dict() for card in cards],
        "rarities": [rarity.label for rarity in Rarity],
        "effects": [effect.value for effect in CardEffect],
    }


@app.websocket("/ws/game/{game_id}")
async def websocket_endpoint(websocket: WebSocket, game_id: str) -> None:
    await websocket.accept()
    if game_id not in manager.active_games:
        await websocket.send_json({"type": "error", "message": "Game not found"})
        await websocket.close()
        return
    manager.connections[game_id].append(websocket)
    await websocket.send_json({"type": "connected", "game_state": manager.serialize(game_id)})

    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        if websocket in manager.connections[game_id]:
            manager.connections[game_id].remove(websocket)


@app.get("/")
async def root() -> Dict[str, Any]:
    return {
        "name": "Card Quest API",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "websocket": "/ws/game/{game_id}",
            "create_game": "POST /api/game/create",
            "start_battle": "POST /api/game/{game_id}/battle/start",
            "play_card": "POST /api/game/{game_id}/battle/play",
            "cards": "GET /api/cards",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
