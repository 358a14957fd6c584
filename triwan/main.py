import os

import yaml
from fastapi import Depends, FastAPI, Form, HTTPException
from fastapi.responses import PlainTextResponse, RedirectResponse
from pydantic import ValidationError

from triwan.core.config import dump_config, factory_defaults, load_config, reset_config, save_config
from triwan.core.errors import BackupError
from triwan.core.models import MigrationConfig, MigrationState
from triwan.core.status import IfStatus, status_snapshot
from triwan.system.apply import load_report, migrate
from triwan.system.backup import list_backups, restore_from_backup
from triwan.system.services import InitdServices
from triwan.system.uci import UciStore

app = FastAPI(title="triwan")


class Runtime:
    def __init__(self, store, services, links, geteuid=None):
        self.store = store
        self.services = services
        self.links = links
        self.geteuid = geteuid


def get_config() -> MigrationConfig:
    return load_config()


def get_runtime(cfg: MigrationConfig = Depends(get_config)) -> Runtime:
    return Runtime(UciStore(cfg.stores.store_dir), InitdServices(), IfStatus())


@app.get("/")
def status(cfg: MigrationConfig = Depends(get_config), rt: Runtime = Depends(get_runtime)):
    report = load_report(cfg.paths.report_file)
    return {
        "wans": [s.model_dump(mode="json") for s in status_snapshot(rt.links, cfg.wans)],
        "last_run": report.model_dump(mode="json") if report else None,
    }


@app.get("/api/config.yaml", response_class=PlainTextResponse)
def get_config_yaml(cfg: MigrationConfig = Depends(get_config)):
    return dump_config(cfg)


@app.post("/advanced")
def advanced_post(config_yaml: str = Form(...)):
    try:
        data = yaml.safe_load(config_yaml) or {}
        cfg = MigrationConfig.model_validate(data)
    except (yaml.YAMLError, ValidationError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    save_config(cfg)
    return RedirectResponse("/", status_code=303)


@app.post("/actions/migrate")
def migrate_now(cfg: MigrationConfig = Depends(get_config), rt: Runtime = Depends(get_runtime)):
    report = migrate(cfg, rt.store, rt.services, rt.links, geteuid=rt.geteuid)
    if report.state == MigrationState.ABORTED:
        code = 403 if report.pre_state is None else 409
        raise HTTPException(status_code=code, detail=report.model_dump(mode="json"))
    return report.model_dump(mode="json")


@app.get("/backups")
def backups(cfg: MigrationConfig = Depends(get_config)):
    return {"backups": list_backups(cfg.paths.backup_root)}


@app.post("/actions/restore")
def do_restore(backup: str = Form(...), cfg: MigrationConfig = Depends(get_config)):
    # only directories under the backup root are accepted
    known = {os.path.basename(p): p for p in list_backups(cfg.paths.backup_root)}
    if backup not in known:
        raise HTTPException(status_code=404, detail=f"unknown backup {backup}")
    try:
        restored = restore_from_backup(known[backup], cfg.stores.store_dir)
    except BackupError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"restored": restored}


@app.post("/actions/reset")
def do_reset():
    reset_config()
    return RedirectResponse("/", status_code=303)


@app.post("/actions/factory")
def do_factory():
    factory_defaults()
    return RedirectResponse("/", status_code=303)
