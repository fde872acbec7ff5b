from __future__ import annotations

import argparse
import os
import sys

from editor_agent.core.types import ConversationTurn
from editor_agent.llm.fake import ScriptedTransport
from editor_agent.observability.logging import configure_logging, get_logger
from editor_agent.orchestrator.agent_loop import AgentLoopController

from .config import load_config

_FAKE_SCRIPT = (
    'Let me look at the workspace first.\nlist_dir(".")',
    "(fake) The workspace listing is above.",
)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Editor agent")
    p.add_argument("--config", default="configs/app.yaml", help="YAML config path")
    p.add_argument("--log-level", default=None, help="log level (overrides logging.level)")
    p.add_argument("--workspace", default=None, help="workspace root (overrides workspace.root)")
    p.add_argument("--mode", choices=["agent", "responder"], default=None, help="chat mode")
    p.add_argument("--text", default="What is in this workspace?", help="user message")
    p.add_argument("--model", default=None, help="model id (overrides llm.model)")
    p.add_argument("--fake", action="store_true", help="use the scripted offline transport")
    return p


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    # Offline stub: allow running without a real key.
    if args.fake and not os.getenv("OPENAI_API_KEY"):
        os.environ["OPENAI_API_KEY"] = "k_fake"

    cfg = load_config(args.config)
    configure_logging(level=args.log_level or cfg.logging.level)
    log = get_logger("editor_agent.cli")

    if args.fake:
        transport = ScriptedTransport(_FAKE_SCRIPT)
    else:
        # Imported lazily so --fake works without the LangChain stack configured.
        from editor_agent.llm.client import LangChainChatTransport

        transport = LangChainChatTransport.from_config(cfg.llm)

    controller = AgentLoopController(
        transport=transport,
        model_id=args.model or cfg.llm.model,
        max_iterations=cfg.agent.max_iterations,
        user_os=cfg.agent.user_os,
        rate_limit=cfg.rate_limit,
    )
    workspace = args.workspace or cfg.workspace.root or os.getcwd()
    controller.set_workspace(workspace)

    def on_chunk(chunk: str) -> None:
        sys.stdout.write(chunk)
        sys.stdout.flush()

    def on_tool_execution(tool: str, is_start: bool, _result: str | None) -> None:
        log.info("tool_execution", tool=tool, phase="start" if is_start else "end")

    try:
        out = controller.send_message_sync(
            [ConversationTurn("user", args.text)],
            args.mode or cfg.agent.mode,
            on_chunk,
            on_tool_execution,
        )
    except KeyboardInterrupt:
        controller.abort()
        return 130

    sys.stdout.write("\n")
    log.info(
        "turn_output",
        state=out.state.value,
        iterations=out.iterations,
        tool_calls=[e.call.tool for e in out.executions],
    )
    return 0
