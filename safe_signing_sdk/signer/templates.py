"""
HTML pages served to the browser wallet.
"""
import json
from typing import Any, Dict

_PAGE = """<!doctype html>
<html>
<head><meta charset="utf-8"><title>{title}</title></head>
<body style="font-family: monospace; padding: 40px;">
<h1>{title}</h1>
<p id="status">Waiting for wallet...</p>
<script>
const REQUEST = {request};
const WAIT_FOR_RESULT = {wait_for_result};

function show(text) {{
  document.getElementById('status').innerHTML = text;
}}

async function report(body) {{
  if (!WAIT_FOR_RESULT) return;
  await fetch('/result', {{
    method: 'POST',
    headers: {{ 'Content-Type': 'application/json' }},
    body: JSON.stringify(body),
  }});
}}

window.addEventListener('load', async () => {{
  if (typeof window.ethereum === 'undefined') {{
    show('No browser wallet found.');
    await report({{ error: 'No browser wallet found' }});
    return;
  }}
  try {{
    await window.ethereum.request({{
      method: 'wallet_switchEthereumChain',
      params: [{{ chainId: REQUEST.chainId }}],
    }});
    const account = (await window.ethereum.request({{ method: 'eth_requestAccounts' }}))[0];
{action}
  }} catch (err) {{
    show('Failed: ' + (err && err.message ? err.message : err));
    await report({{ error: String(err && err.message ? err.message : err) }});
  }}
}});
</script>
</body>
</html>
"""

_SIGN_ACTION = """    const signature = await window.ethereum.request({
      method: 'eth_signTypedData_v4',
      params: [account, JSON.stringify(REQUEST.typedData)],
    });
    show('Signature: <code>' + signature + '</code>');
    await report({ result: signature, account: account });"""

_SEND_ACTION = """    const txHash = await window.ethereum.request({
      method: 'eth_sendTransaction',
      params: [{ from: account, to: REQUEST.to, value: REQUEST.value, data: REQUEST.data }],
    });
    show('Transaction hash: <code>' + txHash + '</code>');
    await report({ result: txHash, account: account });"""


def _embed(obj: Dict[str, Any]) -> str:
    # Keep the JSON from closing the surrounding script element
    return json.dumps(obj).replace("</", "<\\/")


def render_sign_page(typed_data: Dict[str, Any], wait_for_result: bool = True) -> str:
    """Page asking the wallet to sign Safe transaction typed data"""
    request = {"chainId": typed_data["domain"]["chainId"], "typedData": typed_data}
    return _PAGE.format(
        title="Safe Signing Tool",
        request=_embed(request),
        wait_for_result="true" if wait_for_result else "false",
        action=_SIGN_ACTION,
    )


def render_send_page(transaction: Dict[str, Any], wait_for_result: bool = True) -> str:
    """Page asking the wallet to send a raw transaction"""
    return _PAGE.format(
        title="Safe Raw Transaction Tool",
        request=_embed(transaction),
        wait_for_result="true" if wait_for_result else "false",
        action=_SEND_ACTION,
    )
