"""Shared test fixtures for lampsreview."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from lampsreview.exceptions import ProviderError
from lampsreview.files import ContentCache, FileRecord
from lampsreview.graph.builder import GraphBuilder
from lampsreview.graph.scoring import score_graph
from lampsreview.llm.base import LLMProvider, LLMResponse, Message
from lampsreview.scanner import collect_files

EMPTY_REPLY = '{"findings": [], "summary": "No significant issues found."}'


class FakeProvider(LLMProvider):
    """Replays canned replies; optionally fails on given call indexes."""

    def __init__(self, replies: list[str] | None = None, fail_on: set[int] | None = None) -> None:
        super().__init__(model="fake-model")
        self.replies = list(replies or [])
        self.fail_on = fail_on or set()
        self.calls: list[list[Message]] = []

    async def complete(
        self,
        messages: list[Message],
        temperature: float = 0.3,
        max_tokens: int = 16384,
    ) -> LLMResponse:
        index = len(self.calls)
        self.calls.append(messages)
        if index in self.fail_on:
            raise ProviderError("Rate limit exceeded", code="429", status=429)
        content = self.replies[index] if index < len(self.replies) else EMPTY_REPLY
        return LLMResponse(
            content=content,
            finish_reason="stop",
            usage={"prompt_tokens": 100, "completion_tokens": 20},
        )

    @property
    def user_prompts(self) -> list[str]:
        return [m.content for call in self.calls for m in call if m.role == "user"]


@pytest.fixture
def make_provider():
    """Factory for FakeProvider instances."""
    return FakeProvider


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Create a small TypeScript service with an API route, auth code and tests."""
    (tmp_path / "package.json").write_text(
        json.dumps(
            {
                "name": "sample-service",
                "dependencies": {"express": "^4.18.0", "jsonwebtoken": "^9.0.0"},
                "devDependencies": {"typescript": "^5.0.0"},
            },
            indent=2,
        )
    )
    (tmp_path / "tsconfig.json").write_text('{"compilerOptions": {"strict": true}}\n')
    (tmp_path / "README.md").write_text("# Sample service\n\nA tiny API used in tests.\n")
    (tmp_path / ".gitignore").write_text("# build output\ngenerated/\n")

    src = tmp_path / "src"
    (src / "utils").mkdir(parents=True)
    (src / "routes").mkdir()
    (src / "auth").mkdir()
    (src / "__tests__").mkdir()

    (src / "index.ts").write_text(
        """import express from "express";
import { createApp } from "./lib";
import { formatName } from "./utils/format";

const app = createApp(express());
app.listen(3000, () => console.log(formatName("server", "ready")));
"""
    )
    (src / "lib.ts").write_text(
        """import { formatName } from "./utils/format";
import { usersRouter } from "./routes/users";

export function createApp(app) {
  app.use("/users", usersRouter);
  app.locals.title = formatName("sample", "service");
  return app;
}
"""
    )
    (src / "utils" / "format.ts").write_text(
        """export const formatName = (first: string, last: string) => `${first} ${last}`;

export function slugify(value: string): string {
  return value.toLowerCase().replace(/\\s+/g, "-");
}
"""
    )
    (src / "routes" / "users.ts").write_text(
        """import { Router } from "express";
import { formatName } from "../utils/format";
import { requireSession } from "../auth/session";

export const usersRouter = Router();

usersRouter.get("/:id", requireSession, async (req, res) => {
  const rows = await db.query("SELECT * FROM users WHERE id = " + req.params.id);
  res.json({ name: formatName(rows[0].first, rows[0].last) });
});
"""
    )
    (src / "auth" / "session.ts").write_text(
        """import jwt from "jsonwebtoken";
import { formatName } from "../utils/format";

const secret = process.env.JWT_SECRET || "dev-secret";

export function requireSession(req, res, next) {
  const token = req.headers.authorization;
  try {
    req.user = jwt.verify(token, secret);
    next();
  } catch (err) {
    res.status(401).json({ error: formatName("not", "authorized") });
  }
}
"""
    )
    (src / "__tests__" / "session.test.ts").write_text(
        """import { requireSession } from "../auth/session";

test("rejects missing token", () => {
  expect(requireSession).toBeDefined();
});
"""
    )

    generated = tmp_path / "generated"
    generated.mkdir()
    (generated / "bundle.js").write_text("console.log('built');\n")

    modules = tmp_path / "node_modules" / "express"
    modules.mkdir(parents=True)
    (modules / "index.js").write_text("module.exports = {};\n")

    return tmp_path


@pytest.fixture
def project_records(tmp_project: Path) -> list[FileRecord]:
    return collect_files(tmp_project)


@pytest.fixture
def content_cache() -> ContentCache:
    return ContentCache()


@pytest.fixture
def project_graph(project_records: list[FileRecord], content_cache: ContentCache):
    """Scored dependency graph of tmp_project."""
    builder = GraphBuilder(cache=content_cache)
    return score_graph(builder.build(project_records))


def make_record(path: str, content: str) -> FileRecord:
    """In-memory FileRecord; size is the UTF-8 byte length."""
    return FileRecord(
        path=f"/virtual/{path}",
        relative_path=path,
        extension="." + path.rsplit(".", 1)[-1] if "." in path else "",
        size=len(content.encode("utf-8")),
        content=content,
    )


@pytest.fixture
def record_factory():
    return make_record
