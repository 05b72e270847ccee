icon = {
    "running": "🚀",
    "check": "✅",
    "cross": "❌",
    "warning": "⚠️",
    "search": "🔍",
    "report": "📄",
}
