import pytest

from utils.action_input import ActionInput, ArgoCDInput
from utils.app_models import Application
from utils.diff_models import AppDiff
from utils.pr_context import PRContext

HEADER = "## ArgoCD Diff\n\n_Updated at now_ PT\n"
LEGEND = "\n| Legend | Status |\n| :---:  | :---   |\n| ✅ | synced |\n"
URI = "http://argocd.example"


def make_app(name: str, sync_status: str = "Synced", repo: str = "example/deploy",
             path=None, target_revision: str = "HEAD") -> Application:
    return Application.model_validate({
        "metadata": {"name": name},
        "spec": {
            "source": {
                "repoURL": f"https://github.com/{repo}",
                "path": path if path is not None else f"apps/{name}/overlays/local",
                "targetRevision": target_revision,
                "helm": {},
                "kustomize": {},
            },
        },
        "status": {"sync": {"status": sync_status}},
    })


def make_resource(name: str, lines: int = 5) -> str:
    body = "".join(f"< line{i}: value\n" for i in range(lines))
    return f"===== /ConfigMap default/{name} ======\n" + body


def make_diff(name: str, diff=None, error=None, **app_kwargs) -> AppDiff:
    return AppDiff(app=make_app(name, **app_kwargs), diff=diff, error=error)


@pytest.fixture
def action_input(tmp_path):
    return ActionInput(
        github_token="gh-token",
        argocd=ArgoCDInput(
            fqdn="argocd.example.com",
            token="argocd-secret-token",
            extra_cli_args="--grpc-web",
            headers=["X-Access-Secret: hdr-secret-value"],
            bin_dir=str(tmp_path / "bin"),
        ),
        timezone="UTC",
    )


@pytest.fixture
def pr_context():
    return PRContext(owner="example", repo="deploy", number=42, head_sha="0123456789abcdef")
