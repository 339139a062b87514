"""Embeddable start/end call button for third-party sites."""
import json
from typing import Optional

PLACEHOLDER_TOKEN = "YOUR_ACCESS_TOKEN"
SDK_SCRIPT_URL = "https://cdn.retellai.com/sdk/web-sdk.js"

_SNIPPET_TEMPLATE = """
<!-- Add the Retell SDK script -->
<script src="__SDK_URL__"></script>

<!-- Add the call button -->
<button id="start-call-button" style="background-color: #2563eb; color: white; padding: 10px 20px; border-radius: 6px; border: none; cursor: pointer; font-family: system-ui, sans-serif; font-size: 14px; min-width: 150px;">
  Start Call
</button>

<script>
document.addEventListener('DOMContentLoaded', function() {
  const accessToken = __ACCESS_TOKEN__;
  const button = document.getElementById('start-call-button');
  let client = null;
  let starting = false;

  if (!button) {
    console.error('Call button not found');
    return;
  }

  function reset() {
    button.textContent = 'Start Call';
    button.disabled = false;
    starting = false;
  }

  function teardown() {
    if (client) {
      client.stopCall();
      client = null;
    }
  }

  async function probeMicrophone() {
    try {
      const stream = await navigator.mediaDevices.getUserMedia({ audio: true });
      stream.getTracks().forEach(track => track.stop());
      return true;
    } catch (err) {
      console.error('Microphone permission error:', err);
      return false;
    }
  }

  async function startCall() {
    if (starting) return;
    starting = true;
    button.disabled = true;
    button.textContent = 'Connecting...';
    try {
      if (!(await probeMicrophone())) {
        throw new Error('Microphone access is required.');
      }
      teardown();
      client = new Retell.RetellWebClient();
      client.on('call_started', () => {
        button.textContent = 'End Call';
        button.disabled = false;
      });
      client.on('call_connecting', () => { starting = true; });
      client.on('call_ended', () => {
        client = null;
        reset();
      });
      client.on('error', (error) => {
        teardown();
        reset();
        alert(error.message || 'Call error occurred');
      });
      await client.startCall({ accessToken: accessToken, captureDeviceId: 'default' });
    } catch (error) {
      teardown();
      reset();
      alert(error.message || 'Failed to start call');
    }
  }

  button.addEventListener('click', function() {
    if (!client) {
      startCall();
    } else {
      teardown();
      reset();
    }
  });
});
</script>
"""


def render_embed_snippet(access_token: Optional[str] = None) -> str:
    """Render the widget HTML, embedding the access token as a JS string literal."""
    token_literal = json.dumps(access_token or PLACEHOLDER_TOKEN).replace("</", "<\\/")
    return (
        _SNIPPET_TEMPLATE.replace("__SDK_URL__", SDK_SCRIPT_URL)
        .replace("__ACCESS_TOKEN__", token_literal)
        .strip()
    )
