"""Tool-call orchestration and auto-approval core.

This package contains the part of the assistant that sits between the model
and the workspace.

Design overview
---------------

Every action the model asks for travels the same path:

- ``agent_core.parsing`` turns model output (legacy XML tool markup or native
  function calls) into ``ToolUse`` blocks.
- ``agent_core.runtime.ToolDispatcher`` routes each complete block to its
  tool implementation in ``agent_core.tools``, after the repetition check.
- Tools that touch the workspace or the outside world ask for approval. The
  ``ApprovalGate`` consults ``agent_core.policy.check_auto_approval`` first
  and only involves the human when the settings do not decide the action.

Typical usage
-------------

1. Build a ``ToolRegistry`` (``default_registry()``) and an ``ApprovalGate``
   from a ``SettingsProvider`` and a ``HumanApprovalChannel``.
2. Create a ``TaskSession`` per agent run with its ``ToolDeps`` backends.
3. Parse each model message and ``dispatch`` every ``ToolUse`` block; feed the
   returned tool results back to the model.

Import the subpackages directly; this module re-exports nothing so that
``toolgate_ai.mcp_client`` can depend on the shared schemas without import
cycles.
"""
