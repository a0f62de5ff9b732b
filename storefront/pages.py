"""Server-rendered HTML pages and the browser-side cart script."""

import json
from html import escape
from typing import Callable, Iterable

from .models import Product

STORE_NAME = "Web Forx Online Storeshop"


def render_page(title: str, content: str) -> str:
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8"/>
  <meta name="viewport" content="width=device-width, initial-scale=1"/>
  <title>{escape(title)}</title>
  <link rel="stylesheet" href="https://stackpath.bootstrapcdn.com/bootstrap/4.5.2/css/bootstrap.min.css"/>
  <link rel="stylesheet" href="https://cdnjs.cloudflare.com/ajax/libs/font-awesome/6.0.0-beta3/css/all.min.css"/>
  <style>
    body {{ padding-top: 50px; }} .container {{ max-width: 800px; }}
    .fireworks-container {{ position: absolute; pointer-events: none; }}
    .firework {{ position: absolute; width: 8px; height: 8px; background: gold; border-radius: 50%;
                animation: firework-animation 0.8s ease-out forwards; }}
    @keyframes firework-animation {{ 0% {{ transform: translate(0,0); opacity:1; }}
                                    100% {{ transform: translate(var(--dx), var(--dy)); opacity:0; }} }}
  </style>
</head>
<body>
  <div class="container">{content}</div>
  <script src="https://code.jquery.com/jquery-3.5.1.slim.min.js"></script>
  <script src="https://stackpath.bootstrapcdn.com/bootstrap/4.5.2/js/bootstrap.min.js"></script>
</body>
</html>"""


# Shared by every page that touches the cart; the cart lives in sessionStorage.
CART_SCRIPT = """
<script>
  function loadCart() {
    const cart = sessionStorage.getItem('cart');
    return cart ? JSON.parse(cart) : [];
  }
  function saveCart(cart) { sessionStorage.setItem('cart', JSON.stringify(cart)); }
  function cartTotal(cart) { return cart.reduce((s, i) => s + i.price * i.quantity, 0); }
  function cartLines(cart) {
    return cart.map(i => '<li class="list-group-item">' + escapeHtml(i.name) + ' - $' +
      i.price.toFixed(2) + ' x ' + i.quantity + '</li>').join('');
  }
  function escapeHtml(s) {
    return String(s).replace(/[&<>"']/g, c => ({'&':'&amp;','<':'&lt;','>':'&gt;','"':'&quot;',"'":'&#39;'}[c]));
  }
</script>"""


def home_page(hero_url: str) -> str:
    content = f"""
    <div class="hero-banner" style="position:relative; background:url('{escape(hero_url)}') center/cover no-repeat; height:500px;">
      <div style="position:absolute; inset:0; background:rgba(0,0,0,0.5);">
        <div class="d-flex h-100 align-items-center justify-content-center">
          <div class="text-center text-white">
            <h1 class="display-3">Welcome to {STORE_NAME}</h1>
            <p class="lead">Modern, simple, and fast shopping.</p>
            <a class="btn btn-primary btn-lg" href="/products">Browse Products</a>
          </div>
        </div>
      </div>
    </div>"""
    return render_page(STORE_NAME, content)


def _product_row(product: Product, image_url: str) -> str:
    # JSON-encode the name for the JS call, then escape it for the attribute.
    on_click = escape(f"addToCart({product.id}, {json.dumps(product.name)}, {product.price})")
    return f"""
      <div class="list-group-item d-flex justify-content-between align-items-center">
        <div class="d-flex align-items-center">
          <img src="{escape(image_url)}" alt="{escape(product.name)}"
               style="width:250px; height:250px; object-fit:cover; margin-right:15px;"/>
          <div>
            <h5 class="mb-1">{escape(product.name)}</h5>
            <p class="mb-1">${product.price:.2f}</p>
          </div>
        </div>
        <button class="btn btn-success" onclick="{on_click}">Add to Cart</button>
      </div>"""


def products_page(products: Iterable[Product], image_url: Callable[[str], str]) -> str:
    rows = "".join(_product_row(p, image_url(p.image)) for p in products)
    content = f"""
    <div class="d-flex justify-content-end align-items-center mb-3" style="position: relative;">
      <button class="btn btn-secondary" onclick="location.href='/cart'" id="cartButton">
        <i class="fas fa-shopping-cart"></i> Cart (<span id="cartCount">0</span>)
      </button>
    </div>
    <h1 class="mb-4">Our Products</h1>
    <div class="list-group">{rows}</div>
    <div class="text-center mt-4"><a class="btn btn-primary" href="/cart">Go to Cart</a></div>
    {CART_SCRIPT}
    <script>
      function addToCart(id, name, price) {{
        const cart = loadCart();
        const item = cart.find(i => i.id === id);
        if (item) item.quantity += 1; else cart.push({{ id, name, price, quantity: 1 }});
        saveCart(cart); updateCartCount(); showFireworks();
      }}
      function updateCartCount() {{
        document.getElementById('cartCount').innerText = loadCart().reduce((s, i) => s + i.quantity, 0);
      }}
      function showFireworks() {{
        const rect = document.getElementById('cartButton').getBoundingClientRect();
        const container = document.createElement('div');
        container.className = 'fireworks-container';
        container.style.left = rect.left + 'px'; container.style.top = rect.top + 'px';
        container.style.width = rect.width + 'px'; container.style.height = rect.height + 'px';
        document.body.appendChild(container);
        for (let i = 0; i < 10; i++) {{
          const spark = document.createElement('div'); spark.className = 'firework';
          const a = Math.random() * 2 * Math.PI; const d = Math.random() * 30;
          spark.style.setProperty('--dx', (Math.cos(a) * d) + 'px');
          spark.style.setProperty('--dy', (Math.sin(a) * d) + 'px');
          container.appendChild(spark);
        }}
        setTimeout(() => container.remove(), 1000);
      }}
      document.addEventListener('DOMContentLoaded', updateCartCount);
    </script>"""
    return render_page(f"Products - {STORE_NAME}", content)


def cart_page() -> str:
    content = f"""
    <h1>Your Cart</h1>
    <div id="cartContainer"></div>
    <a class="btn btn-primary mt-3" href="/checkout">Proceed to Checkout</a>
    {CART_SCRIPT}
    <script>
      document.addEventListener('DOMContentLoaded', () => {{
        const cart = loadCart();
        const container = document.getElementById('cartContainer');
        container.innerHTML = cart.length === 0
          ? '<p>Your cart is empty.</p>'
          : '<ul class="list-group">' + cartLines(cart) + '</ul>';
      }});
    </script>"""
    return render_page(f"Your Cart - {STORE_NAME}", content)


def checkout_page() -> str:
    content = f"""
    <h1>Checkout</h1>
    <div id="cartSummary"></div>
    <form method="POST" action="/checkout" onsubmit="return prepareOrder()">
      <div class="form-group"><label for="name">Name:</label>
        <input type="text" class="form-control" id="name" name="name" required></div>
      <div class="form-group"><label for="address">Address:</label>
        <textarea class="form-control" id="address" name="address" rows="3" required></textarea></div>
      <input type="hidden" id="cartData" name="cartData">
      <button type="submit" class="btn btn-success">Place Order</button>
    </form>
    {CART_SCRIPT}
    <script>
      function prepareOrder() {{
        const cart = loadCart();
        if (cart.length === 0) {{ alert('Your cart is empty!'); return false; }}
        document.getElementById('cartData').value = JSON.stringify(cart);
        return true;
      }}
      document.addEventListener('DOMContentLoaded', () => {{
        const cart = loadCart();
        const summary = document.getElementById('cartSummary');
        summary.innerHTML = cart.length === 0
          ? '<p>Your cart is empty.</p>'
          : '<ul class="list-group mb-3">' + cartLines(cart) + '</ul><h4>Total: $' + cartTotal(cart).toFixed(2) + '</h4>';
      }});
    </script>"""
    return render_page(f"Checkout - {STORE_NAME}", content)


def confirmation_page(order_id: int) -> str:
    content = f"""
    <div class="text-center">
      <h1>Thank you for your order!</h1>
      <p>Your order ID is {order_id}.</p>
      <a class="btn btn-primary" href="/" onclick="sessionStorage.removeItem('cart')">Back to Home</a>
    </div>"""
    return render_page(f"Order Confirmation - {STORE_NAME}", content)
