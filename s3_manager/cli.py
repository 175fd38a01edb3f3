from __future__ import annotations
"""Interactive menus built on questionary and rich."""
from dataclasses import replace
import logging

import questionary
from rich.console import Console
from rich.table import Table

from .auth import AUTH_OPTIONS, AUTH_PROFILE, AUTH_SAVED, AUTH_SSO, AuthError, selection_for_connection
from .controller import S3ManagerController
from .models import AuthSelection, CleanupReport, ObjectPage
from .profiles import ConnectionProfile
from .services import StoreError
from .settings import AppSettings, SettingsStorage
from .ui_utils import default_bucket_name, format_count, load_package_info, validate_object_count


LOGGER = logging.getLogger(__name__)

OP_CLEANUP = "Cleanup bucket"
OP_CREATE_OBJECTS = "Create objects"
OP_CREATE_BUCKET = "Create bucket"
OP_DELETE_BUCKET = "Delete bucket"
OP_CONNECTIONS = "Saved connections"
OP_SETTINGS = "Settings"
OP_QUIT = "Quit"
OPERATIONS = (OP_CLEANUP, OP_CREATE_OBJECTS, OP_CREATE_BUCKET, OP_DELETE_BUCKET, OP_CONNECTIONS, OP_SETTINGS)


def _is_positive_int(value: str, *, allow_zero: bool = False) -> bool | str:
    text = value.strip()
    if text.isdigit() and (allow_zero or int(text) > 0):
        return True
    return "Enter a whole number" + ("" if allow_zero else " greater than 0")


class BucketManagerCLI:
    """Menu loop: authenticate once, then run bucket operations until quit."""

    def __init__(
        self,
        controller: S3ManagerController | None = None,
        *,
        settings_storage: SettingsStorage | None = None,
        console: Console | None = None,
        prompts=questionary,
    ):
        self._settings_storage = settings_storage or SettingsStorage()
        self._controller = controller or S3ManagerController(settings=self._settings_storage.load())
        self._console = console or Console()
        self._prompts = prompts
        self._cleanups: list[CleanupReport] = []

    @property
    def controller(self) -> S3ManagerController:
        return self._controller

    def run(self) -> None:
        info = load_package_info()
        title = f"{info.name} {info.version}".strip()
        self._console.rule(f"[bold]{title}[/bold]")
        if not self.authenticate():
            return
        while True:
            operation = self._prompts.select(
                "Select an operation",
                choices=[*OPERATIONS, questionary.Separator(), OP_QUIT],
            ).ask()
            if operation is None or operation == OP_QUIT:
                break
            self.run_operation(operation)
        self._warn_abandoned_deletions()

    def authenticate(self) -> bool:
        """Prompt for credentials until a connection succeeds or the user gives up."""

        while True:
            selection = self.select_authentication()
            if selection is None:
                return False
            try:
                buckets = self._controller.connect(selection)
            except (AuthError, StoreError) as exc:
                LOGGER.debug("Authentication with '%s' failed", selection.method, exc_info=True)
                self._error(str(exc))
                continue
            self._console.print(
                f"Connected with [cyan]{selection.method}[/cyan]; "
                f"{format_count(len(buckets), 'bucket')} visible"
            )
            return True

    def select_authentication(self) -> AuthSelection | None:
        method = self._prompts.select("Select AWS authentication option", choices=list(AUTH_OPTIONS)).ask()
        if method is None:
            return None
        if method in (AUTH_PROFILE, AUTH_SSO):
            resolver = self._controller.resolver
            names = resolver.list_profiles() if method == AUTH_PROFILE else resolver.list_sso_profiles()
            if not names:
                self._error(f"No {method} profiles found in the AWS config files")
                return self.select_authentication()
            prompt = "Select an AWS profile" if method == AUTH_PROFILE else "Select an SSO profile"
            profile_name = self._prompts.select(prompt, choices=names).ask()
            if profile_name is None:
                return None
            return AuthSelection(method=method, profile_name=profile_name)
        if method == AUTH_SAVED:
            profile = self._select_saved_connection()
            if profile is None:
                return self.select_authentication()
            return selection_for_connection(profile)
        return AuthSelection(method=method)

    def run_operation(self, operation: str) -> None:
        handlers = {
            OP_CLEANUP: self.cleanup_bucket,
            OP_CREATE_OBJECTS: self.create_objects,
            OP_CREATE_BUCKET: self.create_bucket,
            OP_DELETE_BUCKET: self.delete_bucket,
            OP_CONNECTIONS: self.manage_connections,
            OP_SETTINGS: self.edit_settings,
        }
        handler = handlers.get(operation)
        if handler is None:
            return
        try:
            handler()
        except StoreError as exc:
            LOGGER.debug("%s failed", operation, exc_info=True)
            self._error(str(exc))

    def select_bucket(self) -> str | None:
        buckets = self._controller.list_buckets()
        if not buckets:
            self._console.print("[yellow]No buckets found[/yellow]")
            return None
        return self._prompts.select("Please select an S3 bucket", choices=buckets).ask()

    def cleanup_bucket(self) -> None:
        target = self._select_bucket_with_region()
        if target is None:
            return
        bucket, region = target

        def on_page(page: ObjectPage) -> None:
            self._console.print(f"Spawned a new delete task for {page.key_count} objects")

        # Registered up front so tasks from earlier pages are tracked even if
        # a later listing request fails.
        report = CleanupReport(bucket=bucket)
        self._cleanups.append(report)
        self._controller.cleanup_bucket(bucket, region=region, on_page=on_page, report=report)
        if self._controller.settings.wait_for_deletions:
            with self._console.status("Waiting for delete tasks to finish..."):
                report.wait()
            self._console.print(
                f"[green]Deleted {format_count(report.deleted, 'object')}[/green]"
                + (f", [red]{report.failed} failed[/red]" if report.failed else "")
            )
        else:
            self._console.print(
                f"Listed {format_count(report.pages_listed, 'page')}; "
                f"{format_count(report.pending_tasks, 'delete task')} still running in the background"
            )

    def create_objects(self) -> None:
        target = self._select_bucket_with_region()
        if target is None:
            return
        bucket, region = target
        answer = self._prompts.text(
            "How many objects should I create?",
            validate=validate_object_count,
        ).ask()
        if answer is None:
            return
        with self._console.status("Creating objects..."):
            report = self._controller.create_objects(bucket, int(answer.strip()), region=region)
        self._console.print(f"[green]Created {format_count(report.created, 'object')}[/green]")
        if report.failed:
            self._error(f"Failed to create {format_count(report.failed, 'S3 object')}")

    def create_bucket(self) -> None:
        name = self._prompts.text("Enter new bucket name", default=default_bucket_name()).ask()
        if not name:
            return
        regions = self._controller.list_regions()
        if not regions:
            self._error("No regions available for this account")
            return
        region = self._prompts.select("New bucket location", choices=regions).ask()
        if region is None:
            return
        self._controller.create_bucket(name.strip(), region)
        self._console.print(f"[green]Created bucket {name.strip()} in {region}[/green]")

    def delete_bucket(self) -> None:
        target = self._select_bucket_with_region()
        if target is None:
            return
        bucket, region = target
        self._controller.delete_bucket(bucket, region=region)
        self._console.print(f"[green]Deleted bucket {bucket}[/green]")

    def manage_connections(self) -> None:
        profiles = self._controller.list_profiles()
        if profiles:
            table = Table("Name", "Endpoint", "Access key", "Region")
            for profile in profiles:
                table.add_row(profile.name, profile.endpoint_url, profile.access_key, profile.region or "-")
            self._console.print(table)
        action = self._prompts.select(
            "Saved connections",
            choices=["Add connection", "Remove connection", "Back"],
        ).ask()
        if action == "Add connection":
            profile = self._prompt_connection()
            if profile is not None:
                self._controller.save_profile(profile)
                self._console.print(f"[green]Saved connection {profile.name}[/green]")
        elif action == "Remove connection" and profiles:
            name = self._prompts.select("Remove which connection?", choices=[p.name for p in profiles]).ask()
            if name is not None:
                self._controller.delete_profile(name)

    def edit_settings(self) -> None:
        current = self._controller.settings
        page_size = self._prompts.text(
            "Objects listed per cleanup page",
            default=str(current.page_size),
            validate=_is_positive_int,
        ).ask()
        workers = self._prompts.text(
            "Workers used to create objects",
            default=str(current.populate_workers),
            validate=_is_positive_int,
        ).ask()
        in_flight = self._prompts.text(
            "Maximum delete tasks running at once (0 = unlimited)",
            default=str(current.max_concurrent_deletions),
            validate=lambda value: _is_positive_int(value, allow_zero=True),
        ).ask()
        wait = self._prompts.confirm(
            "Wait for delete tasks after a cleanup?",
            default=current.wait_for_deletions,
        ).ask()
        if None in (page_size, workers, in_flight, wait):
            return
        updated: AppSettings = replace(
            current,
            page_size=int(page_size),
            populate_workers=int(workers),
            max_concurrent_deletions=int(in_flight),
            wait_for_deletions=bool(wait),
        )
        self._controller.settings = updated
        self._settings_storage.save(updated)

    def _select_bucket_with_region(self) -> tuple[str, str] | None:
        bucket = self.select_bucket()
        if bucket is None:
            return None
        region = self._controller.bucket_region(bucket)
        self._console.print(f"Bucket location: [green]{region}[/green]")
        return bucket, region

    def _select_saved_connection(self) -> ConnectionProfile | None:
        profiles = self._controller.list_profiles()
        if not profiles:
            self._console.print("[yellow]No saved connections yet[/yellow]")
            profile = self._prompt_connection()
            if profile is not None:
                self._controller.save_profile(profile)
            return profile
        name = self._prompts.select("Select a saved connection", choices=[p.name for p in profiles]).ask()
        if name is None:
            return None
        return self._controller.get_profile(name)

    def _prompt_connection(self) -> ConnectionProfile | None:
        name = self._prompts.text("Connection name").ask()
        endpoint_url = self._prompts.text("Endpoint URL (empty for AWS)", default="").ask()
        region = self._prompts.text("Region (optional)", default="").ask()
        access_key = self._prompts.text("Access key").ask()
        secret_key = self._prompts.password("Secret key").ask()
        if not name or not access_key or not secret_key or endpoint_url is None or region is None:
            return None
        return ConnectionProfile(
            name=name.strip(),
            endpoint_url=endpoint_url.strip(),
            access_key=access_key.strip(),
            secret_key=secret_key,
            region=region.strip(),
        )

    def _warn_abandoned_deletions(self) -> None:
        pending = sum(report.pending_tasks for report in self._cleanups)
        if pending:
            self._console.print(
                f"[yellow]{format_count(pending, 'delete task')} still running will be abandoned on exit[/yellow]"
            )

    def _error(self, message: str) -> None:
        self._console.print(f"[bold red]{message}[/bold red]")
