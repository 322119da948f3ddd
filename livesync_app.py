from flask import Flask, render_template_string, request, jsonify

DASHBOARD = """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Live server</title>
</head>
<body>
  <h1>Live server</h1>
  <p>Serving <code>{{ config.root }}</code> at <a href="{{ url }}">{{ url }}</a></p>
  <p>Connected browsers: <strong id="clients">{{ clients }}</strong></p>
  <button id="reload">Reload all browsers</button>

  <h2>Recent reloads</h2>
  <ul>
  {% for item in history %}
    <li>{{ item.time }} &mdash; {{ item.path }} ({{ item.clients }} browser(s))</li>
  {% else %}
    <li>None yet</li>
  {% endfor %}
  </ul>

  <h2>Configuration</h2>
  <table>
  {% for key, value in config.items() %}
    <tr><th align="left">{{ key }}</th><td>{{ value }}</td></tr>
  {% endfor %}
  </table>

  <script>
    document.getElementById('reload').onclick = function () {
      fetch('/api/reload', {method: 'POST'})
        .then(function (r) { return r.json(); })
        .then(function (d) { document.getElementById('clients').textContent = d.clients; });
    };
  </script>
</body>
</html>
"""


def create_app(config, watcher):
    """Admin UI for one running live server."""
    app = Flask(__name__, static_folder=None)

    @app.route("/")
    def index():
        return render_template_string(
            DASHBOARD,
            config=config.as_dict(),
            url=config.url,
            clients=watcher.clients,
            history=list(watcher.history),
        )

    @app.route("/api/config")
    def get_config():
        return jsonify(config.as_dict())

    @app.route("/api/clients")
    def get_clients():
        return jsonify({'clients': watcher.clients})

    @app.route("/api/history")
    def get_history():
        return jsonify({'reloads': list(watcher.history)})

    @app.route("/api/reload", methods=['POST'])
    def reload_browsers():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            body = {}
        path = body.get('path', '*')
        if not isinstance(path, str) or not path:
            return jsonify({'status': 'error', 'message': 'path must be a non-empty string'}), 400

        watcher.reload(path)
        return jsonify({'status': 'ok', 'clients': watcher.clients})

    return app
